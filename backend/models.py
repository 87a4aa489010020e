from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

ROLES = ("user", "admin")
RESOURCE_TYPES = ("university", "skill", "competitive")
REQUEST_STATUSES = ("pending", "in-progress", "completed", "rejected")
REQUEST_PRIORITIES = ("low", "medium", "high", "urgent")
SKILL_LEVELS = ("Beginner", "Intermediate", "Advanced")
EXAM_LEVELS = ("National", "State", "University", "International")


def utcnow():
    # naive UTC, matches what SQLite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class University(db.Model):
    __tablename__ = "universities"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    country = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    domains = db.relationship("Domain", backref="university", cascade="all, delete",
                              order_by="Domain.name")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Domain(db.Model):
    __tablename__ = "domains"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    university_id = db.Column(db.Integer, db.ForeignKey("universities.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    subjects = db.relationship("Subject", backref="domain", cascade="all, delete",
                               order_by="Subject.name")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "university_id": self.university_id,
            "university": {"id": self.university.id, "name": self.university.name} if self.university else None,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Subject(db.Model):
    __tablename__ = "subjects"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    domain_id = db.Column(db.Integer, db.ForeignKey("domains.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    resources = db.relationship("Resource", backref="subject", cascade="all, delete")
    requests = db.relationship("ResourceRequest", backref="subject")

    def to_dict(self):
        domain = self.domain
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "domain_id": self.domain_id,
            "domain": {
                "id": domain.id,
                "name": domain.name,
                "university": {"id": domain.university.id, "name": domain.university.name},
            } if domain else None,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class SkillCategory(db.Model):
    __tablename__ = "skill_categories"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    skills = db.relationship("Skill", backref="category", cascade="all, delete",
                             order_by="Skill.name")

    def to_dict(self):
        return {"id": self.id, "name": self.name}


class Skill(db.Model):
    __tablename__ = "skills"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    level = db.Column(db.String(20), default="Beginner")
    description = db.Column(db.Text)
    category_id = db.Column(db.Integer, db.ForeignKey("skill_categories.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    resources = db.relationship("Resource", backref="skill", cascade="all, delete")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "description": self.description,
            "category_id": self.category_id,
            "category": self.category.name if self.category else None,
        }


class ExamCategory(db.Model):
    __tablename__ = "exam_categories"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    exams = db.relationship("Exam", backref="category", cascade="all, delete",
                            order_by="Exam.name")

    def to_dict(self):
        return {"id": self.id, "name": self.name}


class Exam(db.Model):
    __tablename__ = "exams"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    level = db.Column(db.String(20), default="National")
    description = db.Column(db.Text)
    category_id = db.Column(db.Integer, db.ForeignKey("exam_categories.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    resources = db.relationship("Resource", backref="exam", cascade="all, delete")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "description": self.description,
            "category_id": self.category_id,
            "category": self.category.name if self.category else None,
        }


class UserProfile(db.Model):
    __tablename__ = "user_profiles"
    id = db.Column(db.Integer, primary_key=True)
    uid = db.Column(db.String(128), unique=True, nullable=False)
    email = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(200))
    avatar = db.Column(db.Text)
    role = db.Column(db.String(20), nullable=False, default="user")
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    saved = db.relationship("SavedResource", backref="user", cascade="all, delete")
    requests = db.relationship("ResourceRequest", backref="user", cascade="all, delete")
    shares = db.relationship("SharedResource", backref="creator", cascade="all, delete")
    submissions = db.relationship("ResourceSubmission", backref="user")

    @property
    def is_admin(self):
        return self.role == "admin"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "avatar": self.avatar,
            "role": self.role,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Resource(db.Model):
    __tablename__ = "resources"
    __table_args__ = (
        db.CheckConstraint(
            "(CASE WHEN subject_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN skill_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN exam_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_resource_single_category",
        ),
    )
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    url = db.Column(db.Text, nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey("subjects.id", ondelete="CASCADE"))
    skill_id = db.Column(db.Integer, db.ForeignKey("skills.id", ondelete="CASCADE"))
    exam_id = db.Column(db.Integer, db.ForeignKey("exams.id", ondelete="CASCADE"))
    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    submitted_by = db.Column(db.Integer, db.ForeignKey("user_profiles.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    submitter = db.relationship("UserProfile", backref="resources")
    submissions = db.relationship("ResourceSubmission", backref="resource", cascade="all, delete")
    shares = db.relationship("SharedResource", backref="resource", cascade="all, delete")
    saved_by = db.relationship("SavedResource", backref="resource", cascade="all, delete")

    @property
    def type(self):
        if self.subject_id is not None:
            return "university"
        if self.skill_id is not None:
            return "skill"
        return "competitive"

    def to_dict(self):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "type": self.type,
            "subject_id": self.subject_id,
            "skill_id": self.skill_id,
            "exam_id": self.exam_id,
            "is_approved": self.is_approved,
            "submitted_by": {"id": self.submitter.id, "full_name": self.submitter.full_name} if self.submitter else None,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if self.subject is not None:
            domain = self.subject.domain
            data["subject"] = {"id": self.subject.id, "name": self.subject.name}
            data["domain"] = {"id": domain.id, "name": domain.name}
            data["university"] = {"id": domain.university.id, "name": domain.university.name}
        if self.skill is not None:
            data["skill"] = {"id": self.skill.id, "name": self.skill.name, "category": self.skill.category.name}
        if self.exam is not None:
            data["exam"] = {"id": self.exam.id, "name": self.exam.name, "category": self.exam.category.name}
        return data


class ResourceSubmission(db.Model):
    __tablename__ = "resource_submissions"
    id = db.Column(db.Integer, primary_key=True)
    resource_id = db.Column(db.Integer, db.ForeignKey("resources.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user_profiles.id", ondelete="SET NULL"))
    status = db.Column(db.String(20), nullable=False, default="pending")
    submitted_at = db.Column(db.DateTime, default=utcnow)


class SavedResource(db.Model):
    __tablename__ = "saved_resources"
    __table_args__ = (db.UniqueConstraint("user_id", "resource_id", name="uq_saved_resource"),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    resource_id = db.Column(db.Integer, db.ForeignKey("resources.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)


class SharedResource(db.Model):
    __tablename__ = "shared_resources"
    id = db.Column(db.Integer, primary_key=True)
    share_id = db.Column(db.String(12), unique=True, nullable=False)
    resource_id = db.Column(db.Integer, db.ForeignKey("resources.id", ondelete="CASCADE"), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    views = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class ResourceRequest(db.Model):
    __tablename__ = "user_resource_requests"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey("subjects.id", ondelete="SET NULL"))
    skill_name = db.Column(db.String(120))
    exam_name = db.Column(db.String(120))
    priority = db.Column(db.String(10), nullable=False, default="medium")
    contact_email = db.Column(db.String(255))
    status = db.Column(db.String(20), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "subject_id": self.subject_id,
            "subject": {"id": self.subject.id, "name": self.subject.name} if self.subject else None,
            "skill": self.skill_name,
            "exam": self.exam_name,
            "priority": self.priority,
            "contact_email": self.contact_email,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
