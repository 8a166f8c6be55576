"""Typed registry of per-entity record adapters.

Each ``EntityKind`` maps to exactly one ``RecordAdapter`` describing its
model, its file-version model, the URL slug it is served under and the
fields a client may write. The registry refuses to build if any kind is
missing, so a new kind without an adapter fails at import time rather than
silently skipping its version snapshot.
"""
from dataclasses import dataclass, field

from sqlalchemy import BigInteger, Boolean, Date, Float, Integer

from qms.core.exceptions import UnknownEntityKindError
from qms.models.records import (
    BusinessDocument,
    BusinessDocumentFileVersion,
    BusinessImprovement,
    BusinessImprovementFileVersion,
    BusinessProcess,
    BusinessProcessFileVersion,
    CustomerFeedbackSystem,
    CustomerFeedbackSystemFileVersion,
    EntityKind,
    NonConformity,
    NonConformityFileVersion,
    PerformanceMonitoringControl,
    PerformanceMonitoringFileVersion,
    QMSAssessment,
    QMSAssessmentFileVersion,
    QualityObjective,
    QualityObjectiveFileVersion,
    RecordKeepingSystem,
    RecordKeepingSystemFileVersion,
    RiskMatrixEntry,
    RiskMatrixFileVersion,
    ThirdPartyEvaluation,
    ThirdPartyEvaluationFileVersion,
    TrainingSession,
    TrainingSessionFileVersion,
)

# Columns owned by the platform rather than the client.
_SYSTEM_COLUMNS = frozenset({
    "id", "business_area", "created_at", "updated_at",
    "deleted_at", "deleted_by", "version",
})

FILE_FIELDS = ("file_url", "file_name", "file_size", "file_type")


@dataclass(frozen=True)
class RecordAdapter:
    """Persistence description for one record kind."""

    kind: EntityKind
    model: type
    version_model: type
    slug: str
    label: str
    required_fields: tuple = ()
    computed_fields: tuple = field(default=())

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    @property
    def document_type(self) -> str:
        return self.slug

    def _columns(self):
        return self.model.__table__.columns

    @property
    def editable_fields(self) -> tuple:
        """Client-writable columns, attached-file columns included."""
        return tuple(
            col.key for col in self._columns()
            if col.key not in _SYSTEM_COLUMNS and col.key not in self.computed_fields
        )

    def fields_of_type(self, sa_type) -> frozenset:
        return frozenset(
            col.key for col in self._columns()
            if col.key in self.editable_fields and isinstance(col.type, sa_type)
        )

    @property
    def date_fields(self) -> frozenset:
        return self.fields_of_type(Date)

    @property
    def bool_fields(self) -> frozenset:
        return self.fields_of_type(Boolean)

    @property
    def int_fields(self) -> frozenset:
        # BigInteger subclasses Integer
        return self.fields_of_type(Integer)

    @property
    def bigint_fields(self) -> frozenset:
        return self.fields_of_type(BigInteger)

    @property
    def float_fields(self) -> frozenset:
        return self.fields_of_type(Float)


class RecordRegistry:
    """EntityKind → RecordAdapter, with slug lookup for the HTTP layer."""

    def __init__(self, adapters):
        self._by_kind = {}
        self._by_slug = {}
        for adapter in adapters:
            if adapter.kind in self._by_kind:
                raise ValueError(f"Duplicate adapter for {adapter.kind.value}")
            self._by_kind[adapter.kind] = adapter
            self._by_slug[adapter.slug] = adapter
        missing = [kind for kind in EntityKind if kind not in self._by_kind]
        if missing:
            raise UnknownEntityKindError(missing[0])

    def get(self, kind) -> RecordAdapter:
        try:
            return self._by_kind[EntityKind(kind)]
        except (KeyError, ValueError):
            raise UnknownEntityKindError(kind) from None

    def by_slug(self, slug):
        """Adapter served under ``slug``, or None."""
        return self._by_slug.get(slug)

    def by_table(self, table_name):
        for adapter in self._by_kind.values():
            if adapter.table_name == table_name:
                return adapter
        raise UnknownEntityKindError(table_name)

    def __iter__(self):
        return iter(self._by_kind.values())

    def __len__(self):
        return len(self._by_kind)


REGISTRY = RecordRegistry([
    RecordAdapter(
        kind=EntityKind.BUSINESS_PROCESS,
        model=BusinessProcess,
        version_model=BusinessProcessFileVersion,
        slug="business-processes",
        label="Business process",
        required_fields=("process_name",),
    ),
    RecordAdapter(
        kind=EntityKind.RISK_MATRIX,
        model=RiskMatrixEntry,
        version_model=RiskMatrixFileVersion,
        slug="risk-management",
        label="Risk matrix entry",
        required_fields=("process_name", "issue_description"),
        computed_fields=("risk_score",),
    ),
    RecordAdapter(
        kind=EntityKind.QUALITY_OBJECTIVE,
        model=QualityObjective,
        version_model=QualityObjectiveFileVersion,
        slug="business-quality-objectives",
        label="Quality objective",
        required_fields=("name",),
    ),
    RecordAdapter(
        kind=EntityKind.PERFORMANCE_MONITORING,
        model=PerformanceMonitoringControl,
        version_model=PerformanceMonitoringFileVersion,
        slug="performance-monitoring",
        label="Performance monitoring control",
        required_fields=("name_reports",),
    ),
    RecordAdapter(
        kind=EntityKind.TRAINING_SESSION,
        model=TrainingSession,
        version_model=TrainingSessionFileVersion,
        slug="training-sessions",
        label="Training session",
        required_fields=("sessions", "session_date"),
    ),
    RecordAdapter(
        kind=EntityKind.THIRD_PARTY_EVALUATION,
        model=ThirdPartyEvaluation,
        version_model=ThirdPartyEvaluationFileVersion,
        slug="third-party-evaluations",
        label="Third-party evaluation",
        required_fields=("supplier_name",),
    ),
    RecordAdapter(
        kind=EntityKind.CUSTOMER_FEEDBACK_SYSTEM,
        model=CustomerFeedbackSystem,
        version_model=CustomerFeedbackSystemFileVersion,
        slug="customer-feedback-systems",
        label="Customer feedback system",
    ),
    RecordAdapter(
        kind=EntityKind.QMS_ASSESSMENT,
        model=QMSAssessment,
        version_model=QMSAssessmentFileVersion,
        slug="qms-assessments",
        label="QMS assessment",
        required_fields=("assessor_name", "assessment_date"),
    ),
    RecordAdapter(
        kind=EntityKind.BUSINESS_DOCUMENT,
        model=BusinessDocument,
        version_model=BusinessDocumentFileVersion,
        slug="business-documents",
        label="Business document",
        required_fields=("document_name",),
    ),
    RecordAdapter(
        kind=EntityKind.NON_CONFORMITY,
        model=NonConformity,
        version_model=NonConformityFileVersion,
        slug="non-conformities",
        label="Non-conformity",
        required_fields=("description",),
    ),
    RecordAdapter(
        kind=EntityKind.RECORD_KEEPING_SYSTEM,
        model=RecordKeepingSystem,
        version_model=RecordKeepingSystemFileVersion,
        slug="record-keeping-systems",
        label="Record keeping system",
        required_fields=("system_name",),
    ),
    RecordAdapter(
        kind=EntityKind.BUSINESS_IMPROVEMENT,
        model=BusinessImprovement,
        version_model=BusinessImprovementFileVersion,
        slug="business-improvements",
        label="Business improvement",
        required_fields=("improvement_title",),
    ),
])
