"""
QMS Record Keeping Platform
Record domain models.

Models (each paired with a ``*_file_versions`` history table):
    - BusinessProcess: business process register entries
    - RiskMatrixEntry: risk & control matrix (RACM) rows, score = likelihood × impact
    - QualityObjective: measurable quality objectives
    - PerformanceMonitoringControl: monitoring reports and their cadence
    - TrainingSession: training delivered per business area
    - ThirdPartyEvaluation: supplier evaluation status
    - CustomerFeedbackSystem: customer feedback mechanism status
    - QMSAssessment: QMS self-assessment headers
    - BusinessDocument: controlled documents and their review cycle
    - NonConformity: non-conformities with root cause and corrective action
    - RecordKeepingSystem: where and how long each record type is kept
    - BusinessImprovement: improvement initiatives with budget and ROI

Every record is scoped by ``business_area``, soft-deletable, and carries one
optional attached file with a version label.
"""

import enum

from qms.models import db
from qms.models.base import BusinessAreaModel
from qms.models.file_version import FileAttachmentMixin, FileVersionBase
from qms.models.soft_delete import SoftDeleteMixin


class EntityKind(str, enum.Enum):
    """Enumerated tag for every soft-deletable, versioned record type."""

    BUSINESS_PROCESS = "business_process"
    RISK_MATRIX = "risk_matrix"
    QUALITY_OBJECTIVE = "quality_objective"
    PERFORMANCE_MONITORING = "performance_monitoring"
    TRAINING_SESSION = "training_session"
    THIRD_PARTY_EVALUATION = "third_party_evaluation"
    CUSTOMER_FEEDBACK_SYSTEM = "customer_feedback_system"
    QMS_ASSESSMENT = "qms_assessment"
    BUSINESS_DOCUMENT = "business_document"
    NON_CONFORMITY = "non_conformity"
    RECORD_KEEPING_SYSTEM = "record_keeping_system"
    BUSINESS_IMPROVEMENT = "business_improvement"


# ── Risk Scoring ─────────────────────────────────────────────────────────────

def calculate_risk_score(likelihood, impact):
    """Risk score: likelihood (1-5) × impact (1-5). None when either is unset."""
    if likelihood is None or impact is None:
        return None
    lk = max(1, min(5, int(likelihood)))
    i = max(1, min(5, int(impact)))
    return lk * i


class _Record(SoftDeleteMixin, FileAttachmentMixin, BusinessAreaModel):
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)


# ═══════════════════════════════════════════════════════════════════════════
#  BUSINESS PROCESS
# ═══════════════════════════════════════════════════════════════════════════

class BusinessProcess(_Record):
    __tablename__ = "business_processes"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("business_processes"),)

    sub_business_area = db.Column(db.String(150), default="")
    process_name = db.Column(db.String(300), nullable=False)
    document_name = db.Column(db.String(300), default="")
    progress = db.Column(db.String(50), default="New")
    doc_status = db.Column(db.String(50), default="Not Started")
    status_percentage = db.Column(db.Integer, default=0)
    priority = db.Column(db.String(20), default="Medium")
    target_date = db.Column(db.Date, nullable=True)
    process_owner = db.Column(db.String(150), default="")
    remarks = db.Column(db.Text, default="")
    review_date = db.Column(db.Date, nullable=True)


class BusinessProcessFileVersion(FileVersionBase):
    __tablename__ = "business_process_file_versions"
    __record_table__ = "business_processes"


# ═══════════════════════════════════════════════════════════════════════════
#  RISK MATRIX
# ═══════════════════════════════════════════════════════════════════════════

class RiskMatrixEntry(_Record):
    __tablename__ = "risk_matrix_entries"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("risk_matrix_entries"),)

    process_name = db.Column(db.String(300), nullable=False)
    activity_description = db.Column(db.Text, default="")
    issue_description = db.Column(db.Text, nullable=False)
    issue_type = db.Column(db.String(50), default="")
    likelihood = db.Column(db.Integer, nullable=True, comment="1-5 scale")
    impact = db.Column(db.Integer, nullable=True, comment="1-5 scale")
    risk_score = db.Column(db.Integer, nullable=True, comment="likelihood × impact")
    control_description = db.Column(db.Text, default="")
    control_type = db.Column(db.String(50), default="")
    control_owner = db.Column(db.String(150), default="")
    control_effectiveness = db.Column(db.String(50), default="")
    residual_risk = db.Column(db.String(50), default="")
    status = db.Column(db.String(30), default="Open")

    def recalculate_score(self):
        self.risk_score = calculate_risk_score(self.likelihood, self.impact)


class RiskMatrixFileVersion(FileVersionBase):
    __tablename__ = "risk_matrix_file_versions"
    __record_table__ = "risk_matrix_entries"


# ═══════════════════════════════════════════════════════════════════════════
#  QUALITY OBJECTIVE
# ═══════════════════════════════════════════════════════════════════════════

class QualityObjective(_Record):
    __tablename__ = "quality_objectives"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("quality_objectives"),)

    name = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    target = db.Column(db.Float, nullable=True)
    current_value = db.Column(db.Float, nullable=True)
    unit = db.Column(db.String(30), default="")
    target_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(30), default="Not Started")


class QualityObjectiveFileVersion(FileVersionBase):
    __tablename__ = "quality_objective_file_versions"
    __record_table__ = "quality_objectives"


# ═══════════════════════════════════════════════════════════════════════════
#  PERFORMANCE MONITORING CONTROL
# ═══════════════════════════════════════════════════════════════════════════

class PerformanceMonitoringControl(_Record):
    __tablename__ = "performance_monitoring_controls"
    __table_args__ = (
        SoftDeleteMixin.deletion_pair_check("performance_monitoring_controls"),
    )

    sub_business_area = db.Column(db.String(150), default="")
    name_reports = db.Column(db.String(300), nullable=False)
    doc_type = db.Column(db.String(50), default="")
    priority = db.Column(db.String(20), default="Medium")
    doc_status = db.Column(db.String(50), default="Not Started")
    progress = db.Column(db.String(50), default="New")
    status_percentage = db.Column(db.Integer, default=0)
    target_date = db.Column(db.Date, nullable=True)
    proof = db.Column(db.String(300), default="")
    frequency = db.Column(db.String(50), default="")
    responsible_persons = db.Column(db.String(300), default="")
    remarks = db.Column(db.Text, default="")


class PerformanceMonitoringFileVersion(FileVersionBase):
    __tablename__ = "performance_monitoring_control_file_versions"
    __record_table__ = "performance_monitoring_controls"


# ═══════════════════════════════════════════════════════════════════════════
#  TRAINING SESSION
# ═══════════════════════════════════════════════════════════════════════════

class TrainingSession(_Record):
    __tablename__ = "training_sessions"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("training_sessions"),)

    sessions = db.Column(db.String(300), nullable=False)
    session_date = db.Column(db.Date, nullable=False)
    remarks = db.Column(db.Text, default="")


class TrainingSessionFileVersion(FileVersionBase):
    __tablename__ = "training_session_file_versions"
    __record_table__ = "training_sessions"


# ═══════════════════════════════════════════════════════════════════════════
#  THIRD-PARTY EVALUATION
# ═══════════════════════════════════════════════════════════════════════════

class ThirdPartyEvaluation(_Record):
    __tablename__ = "third_party_evaluations"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("third_party_evaluations"),)

    supplier_name = db.Column(db.String(300), nullable=False)
    evaluation_system_in_place = db.Column(db.Boolean, default=False)
    document_reference = db.Column(db.String(300), default="")
    last_evaluation_date = db.Column(db.Date, nullable=True)
    status_percentage = db.Column(db.Integer, default=0)
    doc_status = db.Column(db.String(50), default="Not Started")
    progress = db.Column(db.String(50), default="New")
    notes = db.Column(db.Text, default="")


class ThirdPartyEvaluationFileVersion(FileVersionBase):
    __tablename__ = "third_party_evaluation_file_versions"
    __record_table__ = "third_party_evaluations"


# ═══════════════════════════════════════════════════════════════════════════
#  CUSTOMER FEEDBACK SYSTEM
# ═══════════════════════════════════════════════════════════════════════════

class CustomerFeedbackSystem(_Record):
    __tablename__ = "customer_feedback_systems"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("customer_feedback_systems"),)

    has_feedback_system = db.Column(db.Boolean, default=False)
    document_reference = db.Column(db.String(300), default="")
    last_review_date = db.Column(db.Date, nullable=True)
    status_percentage = db.Column(db.Integer, default=0)
    doc_status = db.Column(db.String(50), default="Not Started")
    progress = db.Column(db.String(50), default="New")
    notes = db.Column(db.Text, default="")


class CustomerFeedbackSystemFileVersion(FileVersionBase):
    __tablename__ = "customer_feedback_system_file_versions"
    __record_table__ = "customer_feedback_systems"


# ═══════════════════════════════════════════════════════════════════════════
#  QMS ASSESSMENT
# ═══════════════════════════════════════════════════════════════════════════

class QMSAssessment(_Record):
    __tablename__ = "qms_assessments"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("qms_assessments"),)

    assessor_name = db.Column(db.String(150), nullable=False)
    assessment_date = db.Column(db.Date, nullable=False)


class QMSAssessmentFileVersion(FileVersionBase):
    __tablename__ = "qms_assessment_file_versions"
    __record_table__ = "qms_assessments"


# ═══════════════════════════════════════════════════════════════════════════
#  BUSINESS DOCUMENT
# ═══════════════════════════════════════════════════════════════════════════

class BusinessDocument(_Record):
    __tablename__ = "business_documents"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("business_documents"),)

    sub_business_area = db.Column(db.String(150), default="")
    document_name = db.Column(db.String(300), nullable=False)
    name_and_numbering = db.Column(db.String(300), default="")
    document_type = db.Column(db.String(50), default="", comment="Policy | Procedure | Form | …")
    progress = db.Column(db.String(50), default="Not Started")
    doc_status = db.Column(db.String(50), default="Draft")
    status_percentage = db.Column(db.Integer, default=0)
    priority = db.Column(db.String(20), default="Medium")
    target_date = db.Column(db.Date, nullable=True)
    document_owner = db.Column(db.String(150), default="")
    update_date = db.Column(db.Date, nullable=True)
    remarks = db.Column(db.Text, default="")
    review_date = db.Column(db.Date, nullable=True)


class BusinessDocumentFileVersion(FileVersionBase):
    __tablename__ = "business_document_file_versions"
    __record_table__ = "business_documents"


# ═══════════════════════════════════════════════════════════════════════════
#  NON-CONFORMITY
# ═══════════════════════════════════════════════════════════════════════════

class NonConformity(_Record):
    __tablename__ = "non_conformities"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("non_conformities"),)

    sub_business_area = db.Column(db.String(150), default="")
    nc_number = db.Column(db.String(50), default="")
    nc_type = db.Column(db.String(50), default="", comment="Major | Minor | Observation")
    description = db.Column(db.Text, nullable=False)
    root_cause = db.Column(db.Text, default="")
    corrective_action = db.Column(db.Text, default="")
    responsible_person = db.Column(db.String(150), default="")
    target_date = db.Column(db.Date, nullable=True)
    completion_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(30), default="Open")
    priority = db.Column(db.String(20), default="Medium")
    impact_level = db.Column(db.String(30), default="")
    verification_method = db.Column(db.Text, default="")
    effectiveness_review = db.Column(db.Text, default="")
    lessons_learned = db.Column(db.Text, default="")
    related_documents = db.Column(db.Text, default="")


class NonConformityFileVersion(FileVersionBase):
    __tablename__ = "non_conformity_file_versions"
    __record_table__ = "non_conformities"


# ═══════════════════════════════════════════════════════════════════════════
#  RECORD KEEPING SYSTEM
# ═══════════════════════════════════════════════════════════════════════════

class RecordKeepingSystem(_Record):
    __tablename__ = "record_keeping_systems"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("record_keeping_systems"),)

    sub_business_area = db.Column(db.String(150), default="")
    record_type = db.Column(db.String(100), default="")
    system_name = db.Column(db.String(300), nullable=False)
    system_description = db.Column(db.Text, default="")
    retention_period = db.Column(db.String(100), default="")
    storage_location = db.Column(db.String(300), default="")
    access_controls = db.Column(db.Text, default="")
    backup_procedures = db.Column(db.Text, default="")
    disposal_procedures = db.Column(db.Text, default="")
    compliance_status = db.Column(db.String(50), default="")
    last_audit_date = db.Column(db.Date, nullable=True)
    next_audit_date = db.Column(db.Date, nullable=True)
    audit_findings = db.Column(db.Text, default="")
    corrective_actions = db.Column(db.Text, default="")
    responsible_person = db.Column(db.String(150), default="")
    status_percentage = db.Column(db.Float, nullable=True)
    doc_status = db.Column(db.String(50), default="Not Started")
    progress = db.Column(db.String(50), default="New")
    notes = db.Column(db.Text, default="")


class RecordKeepingSystemFileVersion(FileVersionBase):
    __tablename__ = "record_keeping_system_file_versions"
    __record_table__ = "record_keeping_systems"


# ═══════════════════════════════════════════════════════════════════════════
#  BUSINESS IMPROVEMENT
# ═══════════════════════════════════════════════════════════════════════════

class BusinessImprovement(_Record):
    __tablename__ = "business_improvements"
    __table_args__ = (SoftDeleteMixin.deletion_pair_check("business_improvements"),)

    sub_business_area = db.Column(db.String(150), default="")
    improvement_title = db.Column(db.String(300), nullable=False)
    improvement_type = db.Column(db.String(50), default="")
    description = db.Column(db.Text, default="")
    business_case = db.Column(db.Text, default="")
    expected_benefits = db.Column(db.Text, default="")
    implementation_plan = db.Column(db.Text, default="")
    success_criteria = db.Column(db.Text, default="")
    responsible_person = db.Column(db.String(150), default="")
    start_date = db.Column(db.Date, nullable=True)
    target_completion_date = db.Column(db.Date, nullable=True)
    actual_completion_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(30), default="Proposed")
    priority = db.Column(db.String(20), default="Medium")
    budget_allocated = db.Column(db.Float, nullable=True)
    actual_cost = db.Column(db.Float, nullable=True)
    roi_calculation = db.Column(db.Text, default="")
    lessons_learned = db.Column(db.Text, default="")
    next_steps = db.Column(db.Text, default="")
    related_processes = db.Column(db.Text, default="")
    status_percentage = db.Column(db.Float, nullable=True)
    doc_status = db.Column(db.String(50), default="Not Started")
    progress = db.Column(db.String(50), default="New")
    notes = db.Column(db.Text, default="")


class BusinessImprovementFileVersion(FileVersionBase):
    __tablename__ = "business_improvement_file_versions"
    __record_table__ = "business_improvements"
