from flask import Flask, request, jsonify
from flask_cors import CORS
from config import Config
from models import (
    db, utcnow, ROLES, SKILL_LEVELS, EXAM_LEVELS, REQUEST_STATUSES,
    University, Domain, Subject, SkillCategory, Skill, ExamCategory, Exam,
    Resource, ResourceSubmission, UserProfile, SavedResource, SharedResource, ResourceRequest,
)
from auth import (
    init_identity_provider, verify_identity_token, get_or_create_profile, issue_token,
    optional_user, require_user, require_admin,
)
from errors import register_error_handlers, ValidationError, NotFoundError, AuthorizationError, ConflictError
from logging_config import setup_logging, install_request_logging
from core.validation import validate_resource, validate_request, is_valid_email, CATEGORY_FIELDS
from seed import register_commands
from datetime import timedelta
from time import time
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging
import secrets
import string

logger = logging.getLogger("cachedinfo.api")

SHARE_ID_ALPHABET = string.ascii_letters + string.digits
SEARCH_LIMIT = 10


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    setup_logging(app.config['LOG_LEVEL'], app.config['ENV'])
    install_request_logging(app)

    CORS(app, resources={r"/*": {"origins": app.config['CORS_ORIGINS'].split(',')}}, supports_credentials=True)

    db.init_app(app)
    register_error_handlers(app, db)
    register_commands(app)
    init_identity_provider(app)

    # Simple per-IP rate limiter in production
    rate_store = app.extensions.setdefault('rate_limit', {})

    @app.before_request
    def _rate_limit():
        if app.config['ENV'] != 'production':
            return None
        ip = request.remote_addr or 'unknown'
        now = int(time())
        window = 60
        limit = app.config['RATE_LIMIT_PER_MINUTE']
        # drop addresses with nothing left in the window
        for stale_ip in [k for k, stamps in rate_store.items() if now - stamps[-1] >= window]:
            del rate_store[stale_ip]
        bucket = [t for t in rate_store.get(ip, []) if now - t < window]
        if len(bucket) >= limit:
            logger.warning("rate limited %s", ip)
            return jsonify({"error": "rate_limited", "retry_after": window}), 429
        bucket.append(now)
        rate_store[ip] = bucket
        return None

    # --- Helpers -----------------------------------------------------------
    def body():
        return request.get_json(silent=True) or {}

    def get_or_404(model, entity_id, label):
        obj = db.session.get(model, entity_id)
        if obj is None:
            raise NotFoundError(label, entity_id)
        return obj

    def as_id(value, field, errors):
        if value is None or value == '':
            return None
        # JSON true/false and floats are not ids
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.isascii() and value.isdigit():
            return int(value)
        errors[field] = "Invalid id"
        return None

    def required_name(data, label):
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError({"name": f"{label} name is required"})
        return name

    def commit_or_conflict(message):
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(message)

    def resolve_category(data):
        """Check that the chosen subject/skill/exam exists and that the
        university/domain picked on the way down actually own the subject."""
        errors = {}
        ids = {field: as_id(data.get(field), field, errors) for field in
               ('university_id', 'domain_id', 'subject_id', 'skill_id', 'exam_id')}
        if errors:
            raise ValidationError(errors)
        if ids['subject_id'] is not None:
            subject = db.session.get(Subject, ids['subject_id'])
            if subject is None:
                errors['subject_id'] = "Subject not found"
            else:
                if ids['domain_id'] is not None and subject.domain_id != ids['domain_id']:
                    errors['subject_id'] = "Subject does not belong to the selected domain"
                if ids['university_id'] is not None and subject.domain.university_id != ids['university_id']:
                    errors['domain_id'] = "Domain does not belong to the selected university"
        if ids['skill_id'] is not None and db.session.get(Skill, ids['skill_id']) is None:
            errors['skill_id'] = "Skill not found"
        if ids['exam_id'] is not None and db.session.get(Exam, ids['exam_id']) is None:
            errors['exam_id'] = "Exam not found"
        if errors:
            raise ValidationError(errors)
        return ids['subject_id'], ids['skill_id'], ids['exam_id']

    def create_resource(data, user, approved):
        errors = validate_resource(data)
        if errors:
            raise ValidationError(errors)
        subject_id, skill_id, exam_id = resolve_category(data)
        resource = Resource(
            title=str(data['title']).strip(),
            description=str(data['description']).strip(),
            url=str(data['url']).strip(),
            subject_id=subject_id,
            skill_id=skill_id,
            exam_id=exam_id,
            is_approved=approved,
            submitted_by=user.id if user else None,
        )
        db.session.add(resource)
        db.session.commit()

        # Tracking row is best effort; the resource stays even if this fails
        try:
            db.session.add(ResourceSubmission(
                resource_id=resource.id,
                user_id=user.id if user else None,
                status='approved' if approved else 'pending',
            ))
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("could not record submission for resource %s", resource.id)
        logger.info("resource %s submitted (approved=%s)", resource.id, approved)
        return resource

    def update_resource(resource, data, allow_approval):
        candidate = {
            'title': resource.title,
            'description': resource.description,
            'url': resource.url,
            'subject_id': resource.subject_id,
            'skill_id': resource.skill_id,
            'exam_id': resource.exam_id,
        }
        # Picking a new category replaces the old one rather than adding to it
        if any(field in data for field in CATEGORY_FIELDS.values()):
            for field in CATEGORY_FIELDS.values():
                candidate[field] = None
        for key in ('title', 'description', 'url', 'type', 'university_id', 'domain_id',
                    'subject_id', 'skill_id', 'exam_id'):
            if key in data:
                candidate[key] = data[key]
        errors = validate_resource(candidate)
        if errors:
            raise ValidationError(errors)
        subject_id, skill_id, exam_id = resolve_category(candidate)
        resource.title = str(candidate['title']).strip()
        resource.description = str(candidate['description']).strip()
        resource.url = str(candidate['url']).strip()
        resource.subject_id, resource.skill_id, resource.exam_id = subject_id, skill_id, exam_id
        if allow_approval and 'is_approved' in data:
            resource.is_approved = bool(data['is_approved'])
        db.session.commit()
        return resource

    def approve(resource):
        resource.is_approved = True
        for submission in resource.submissions:
            submission.status = 'approved'
        db.session.commit()
        logger.info("resource %s approved", resource.id)
        return resource

    def owner_or_admin(resource, user):
        if not user.is_admin and resource.submitted_by != user.id:
            raise AuthorizationError("Access denied. You can only modify your own resources.")

    def approved_resources():
        return Resource.query.filter_by(is_approved=True)

    def new_share_id():
        while True:
            share_id = ''.join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(12))
            if not SharedResource.query.filter_by(share_id=share_id).first():
                return share_id

    def dashboard_counts():
        return {
            "users": UserProfile.query.count(),
            "resources": Resource.query.count(),
            "pendingResources": Resource.query.filter_by(is_approved=False).count(),
            "approvedResources": Resource.query.filter_by(is_approved=True).count(),
            "universities": University.query.count(),
            "domains": Domain.query.count(),
            "subjects": Subject.query.count(),
            "skills": Skill.query.count(),
            "exams": Exam.query.count(),
            "pendingRequests": ResourceRequest.query.filter_by(status='pending').count(),
        }

    # --- Public ------------------------------------------------------------
    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/")
    def index():
        return {
            "message": "CachedInfo API is running!",
            "version": "1.0.0",
            "endpoints": {
                "auth": "/api/auth",
                "resources": "/api/resources",
                "catalog": "/api/catalog",
                "search": "/api/search",
                "universities": "/api/universities",
                "domains": "/api/domains",
                "subjects": "/api/subjects",
                "skills": "/api/skills",
                "exams": "/api/exams",
                "requests": "/api/requests",
                "admin": "/api/admin",
            },
        }

    @app.get('/api/universities')
    def universities_list():
        items = University.query.order_by(University.name).all()
        return [{"id": u.id, "name": u.name} for u in items]

    @app.get('/api/universities/<int:uid>/domains')
    def university_domains(uid):
        items = Domain.query.filter_by(university_id=uid).order_by(Domain.name).all()
        return [{"id": d.id, "name": d.name} for d in items]

    @app.get('/api/domains')
    def domains_list():
        q = Domain.query
        if request.args.get('university_id'):
            q = q.filter_by(university_id=request.args.get('university_id', type=int))
        return [{"id": d.id, "name": d.name, "university_id": d.university_id} for d in q.order_by(Domain.name).all()]

    @app.get('/api/domains/<int:did>/subjects')
    def domain_subjects(did):
        items = Subject.query.filter_by(domain_id=did).order_by(Subject.name).all()
        return [{"id": s.id, "name": s.name} for s in items]

    @app.get('/api/subjects')
    def subjects_list():
        q = Subject.query
        if request.args.get('domain_id'):
            q = q.filter_by(domain_id=request.args.get('domain_id', type=int))
        return [{"id": s.id, "name": s.name, "domain_id": s.domain_id} for s in q.order_by(Subject.name).all()]

    @app.get('/api/skills')
    def skills_list():
        return [s.to_dict() for s in Skill.query.order_by(Skill.name).all()]

    @app.get('/api/skills/categories')
    def skill_categories_list():
        return [c.to_dict() for c in SkillCategory.query.order_by(SkillCategory.name).all()]

    @app.get('/api/skills/categories/<int:cid>/skills')
    def category_skills(cid):
        items = Skill.query.filter_by(category_id=cid).order_by(Skill.name).all()
        return [{"id": s.id, "name": s.name, "level": s.level} for s in items]

    @app.get('/api/exams')
    def exams_list():
        return [e.to_dict() for e in Exam.query.order_by(Exam.name).all()]

    @app.get('/api/exams/categories')
    def exam_categories_list():
        return [c.to_dict() for c in ExamCategory.query.order_by(ExamCategory.name).all()]

    @app.get('/api/exams/categories/<int:cid>/exams')
    def category_exams(cid):
        items = Exam.query.filter_by(category_id=cid).order_by(Exam.name).all()
        return [{"id": e.id, "name": e.name, "level": e.level} for e in items]

    @app.get('/api/resources')
    def resources_list():
        items = approved_resources().order_by(Resource.created_at.desc(), Resource.id.desc()).all()
        return [r.to_dict() for r in items]

    @app.get('/api/resources/recent')
    def resources_recent():
        limit = min(max(request.args.get('limit', 6, type=int), 1), 50)
        items = approved_resources().order_by(Resource.created_at.desc(), Resource.id.desc()).limit(limit).all()
        return [r.to_dict() for r in items]

    @app.get('/api/resources/count')
    def resources_count():
        return {"count": Resource.query.count()}

    @app.get('/api/resources/<int:rid>')
    def resource_detail(rid):
        return get_or_404(Resource, rid, "Resource").to_dict()

    @app.get('/api/resources/shared/<share_id>')
    def shared_resource(share_id):
        cutoff = utcnow() - timedelta(days=app.config['SHARE_LINK_DAYS'])
        share = SharedResource.query.filter(
            SharedResource.share_id == share_id,
            SharedResource.is_active.is_(True),
            SharedResource.created_at >= cutoff,
        ).first()
        if not share:
            raise NotFoundError("Shared resource")
        share.views += 1
        db.session.commit()
        return share.resource.to_dict()

    @app.get('/api/catalog')
    def catalog():
        universities = []
        for u in University.query.order_by(University.name).all():
            universities.append({
                "id": u.id,
                "name": u.name,
                "domains": [{
                    "id": d.id,
                    "name": d.name,
                    "subjects": [{
                        "id": s.id,
                        "name": s.name,
                        "resources": [r.to_dict() for r in s.resources if r.is_approved],
                    } for s in d.subjects],
                } for d in u.domains],
            })
        others = approved_resources().filter(Resource.subject_id.is_(None)) \
            .order_by(Resource.created_at.desc()).all()
        return {
            "universities": universities,
            "skills": [r.to_dict() for r in others if r.skill_id is not None],
            "exams": [r.to_dict() for r in others if r.exam_id is not None],
        }

    @app.get('/api/search')
    def search():
        q = (request.args.get('q') or '').strip()
        if not q:
            return []
        pattern = f"%{q}%"
        items = approved_resources().filter(or_(
            Resource.title.ilike(pattern),
            Resource.description.ilike(pattern),
        )).order_by(Resource.created_at.desc()).limit(SEARCH_LIMIT).all()
        return [r.to_dict() for r in items]

    @app.get('/api/stats')
    def stats():
        return {
            "totalResources": approved_resources().count(),
            "totalUsers": UserProfile.query.count(),
            "totalRequests": ResourceRequest.query.filter_by(status='completed').count(),
        }

    @app.get('/api/users/count')
    def users_count():
        return {"count": UserProfile.query.count()}

    @app.get('/api/requests/count')
    def requests_count():
        return {"count": ResourceRequest.query.count()}

    # --- Auth --------------------------------------------------------------
    @app.post('/api/auth/google')
    def auth_google():
        data = body()
        identity = verify_identity_token(data.get('tokenId') or data.get('id_token'))
        user, created = get_or_create_profile(identity, full_name=(data.get('full_name') or '').strip() or None)
        return {"token": issue_token(user), "user": user.to_dict(), "created": created}

    @app.get('/api/auth/user')
    def auth_user():
        return require_user().to_dict()

    # --- Resources ---------------------------------------------------------
    @app.post('/api/resources')
    def resources_submit():
        user = optional_user()
        resource = create_resource(body(), user, approved=bool(user and user.is_admin))
        return resource.to_dict(), 201

    @app.put('/api/resources/<int:rid>')
    def resources_update(rid):
        user = require_user()
        resource = get_or_404(Resource, rid, "Resource")
        owner_or_admin(resource, user)
        return update_resource(resource, body(), allow_approval=False).to_dict()

    @app.delete('/api/resources/<int:rid>')
    def resources_delete(rid):
        user = require_user()
        resource = get_or_404(Resource, rid, "Resource")
        owner_or_admin(resource, user)
        db.session.delete(resource)
        db.session.commit()
        return {"message": "Resource deleted successfully"}

    @app.put('/api/resources/approve/<int:rid>')
    def resources_approve(rid):
        require_admin()
        return approve(get_or_404(Resource, rid, "Resource")).to_dict()

    @app.post('/api/resources/share')
    def resources_share():
        user = require_user()
        data = body()
        errors = {}
        rid = as_id(data.get('resource_id') or data.get('resourceId'), 'resource_id', errors)
        if rid is None:
            raise ValidationError(errors or {"resource_id": "Resource ID is required"})
        resource = get_or_404(Resource, rid, "Resource")
        if not resource.is_approved:
            raise ValidationError({"resource_id": "Cannot share unapproved resources"})
        share = SharedResource(share_id=new_share_id(), resource_id=resource.id, created_by=user.id)
        db.session.add(share)
        db.session.commit()
        return {"shareId": share.share_id}, 201

    # --- Users -------------------------------------------------------------
    @app.get('/api/users/profile')
    def profile_get():
        return require_user().to_dict()

    @app.put('/api/users/profile')
    def profile_update():
        user = require_user()
        data = body()
        if 'email' in data:
            email = (data.get('email') or '').strip()
            if not is_valid_email(email):
                raise ValidationError({"email": "Please enter a valid email address"})
            user.email = email
        if 'full_name' in data:
            user.full_name = (data.get('full_name') or '').strip() or None
        db.session.commit()
        return user.to_dict()

    @app.get('/api/users/saved-resources')
    def saved_list():
        user = require_user()
        items = SavedResource.query.filter_by(user_id=user.id).order_by(SavedResource.id.desc()).all()
        return [s.resource.to_dict() for s in items]

    @app.post('/api/users/saved-resources')
    def saved_add():
        user = require_user()
        data = body()
        errors = {}
        rid = as_id(data.get('resource_id') or data.get('resourceId'), 'resource_id', errors)
        if rid is None:
            raise ValidationError(errors or {"resource_id": "Resource ID is required"})
        get_or_404(Resource, rid, "Resource")
        if SavedResource.query.filter_by(user_id=user.id, resource_id=rid).first():
            raise ConflictError("Resource already saved")
        db.session.add(SavedResource(user_id=user.id, resource_id=rid))
        commit_or_conflict("Resource already saved")
        return {"message": "Resource saved successfully"}, 201

    @app.delete('/api/users/saved-resources/<int:rid>')
    def saved_remove(rid):
        user = require_user()
        SavedResource.query.filter_by(user_id=user.id, resource_id=rid).delete()
        db.session.commit()
        return {"message": "Resource removed from saved list"}

    # --- Requests ----------------------------------------------------------
    @app.post('/api/requests')
    def requests_submit():
        user = require_user()
        data = body()
        errors = validate_request(data)
        subject_id = as_id(data.get('subject_id'), 'subject_id', errors)
        if not errors and data.get('type') == 'university' and db.session.get(Subject, subject_id) is None:
            errors['subject_id'] = "Subject not found"
        if errors:
            raise ValidationError(errors)
        request_type = data['type']
        req = ResourceRequest(
            user_id=user.id,
            title=str(data['title']).strip(),
            description=str(data['description']).strip(),
            type=request_type,
            subject_id=subject_id if request_type == 'university' else None,
            skill_name=str(data['skill']).strip() if request_type == 'skill' else None,
            exam_name=str(data['exam']).strip() if request_type == 'competitive' else None,
            priority=data.get('priority') or 'medium',
            contact_email=(data.get('contact_email') or '').strip() or user.email,
        )
        db.session.add(req)
        db.session.commit()
        logger.info("request %s submitted by user %s", req.id, user.id)
        return {"message": "Request submitted successfully", "request": req.to_dict()}, 201

    @app.get('/api/requests/mine')
    def requests_mine():
        user = require_user()
        items = ResourceRequest.query.filter_by(user_id=user.id).order_by(ResourceRequest.id.desc()).all()
        return [r.to_dict() for r in items]

    # --- Admin -------------------------------------------------------------
    @app.get('/api/admin/dashboard')
    def admin_dashboard():
        admin = require_admin()
        return {
            "stats": dashboard_counts(),
            "admin": {"id": admin.id, "name": admin.full_name, "email": admin.email},
        }

    # Universities
    @app.get('/api/admin/universities')
    def admin_universities():
        require_admin()
        items = University.query.order_by(University.name).all()
        return [dict(u.to_dict(), domain_count=len(u.domains)) for u in items]

    @app.post('/api/admin/universities')
    def admin_universities_add():
        require_admin()
        data = body()
        u = University(name=required_name(data, "University"), country=(data.get('country') or '').strip() or None)
        db.session.add(u)
        commit_or_conflict("University already exists")
        return u.to_dict(), 201

    @app.put('/api/admin/universities/<int:uid>')
    def admin_universities_update(uid):
        require_admin()
        u = get_or_404(University, uid, "University")
        data = body()
        if 'name' in data:
            u.name = required_name(data, "University")
        if 'country' in data:
            u.country = (data.get('country') or '').strip() or None
        commit_or_conflict("University already exists")
        return u.to_dict()

    @app.delete('/api/admin/universities/<int:uid>')
    def admin_universities_delete(uid):
        require_admin()
        u = get_or_404(University, uid, "University")
        db.session.delete(u)
        db.session.commit()
        logger.info("university %s deleted with its domains and subjects", uid)
        return {"message": "University deleted successfully"}

    @app.get('/api/admin/universities/<int:uid>/domains')
    def admin_university_domains(uid):
        require_admin()
        u = get_or_404(University, uid, "University")
        return [d.to_dict() for d in u.domains]

    # Domains
    @app.get('/api/admin/domains')
    def admin_domains():
        require_admin()
        q = Domain.query
        if request.args.get('university_id'):
            q = q.filter_by(university_id=request.args.get('university_id', type=int))
        return [dict(d.to_dict(), subject_count=len(d.subjects)) for d in q.order_by(Domain.name).all()]

    def domain_parent(data):
        errors = {}
        university_id = as_id(data.get('university_id'), 'university_id', errors)
        if university_id is None or db.session.get(University, university_id) is None:
            errors.setdefault('university_id', "Please select a university")
        if errors:
            raise ValidationError(errors)
        return university_id

    @app.post('/api/admin/domains')
    def admin_domains_add():
        require_admin()
        data = body()
        d = Domain(name=required_name(data, "Domain"), university_id=domain_parent(data),
                   description=(data.get('description') or '').strip() or None)
        db.session.add(d)
        db.session.commit()
        return d.to_dict(), 201

    @app.put('/api/admin/domains/<int:did>')
    def admin_domains_update(did):
        require_admin()
        d = get_or_404(Domain, did, "Domain")
        data = body()
        if 'name' in data:
            d.name = required_name(data, "Domain")
        if 'university_id' in data:
            d.university_id = domain_parent(data)
        if 'description' in data:
            d.description = (data.get('description') or '').strip() or None
        db.session.commit()
        return d.to_dict()

    @app.delete('/api/admin/domains/<int:did>')
    def admin_domains_delete(did):
        require_admin()
        d = get_or_404(Domain, did, "Domain")
        db.session.delete(d)
        db.session.commit()
        logger.info("domain %s deleted with its subjects", did)
        return {"message": "Domain deleted successfully"}

    @app.get('/api/admin/domains/<int:did>/subjects')
    def admin_domain_subjects(did):
        require_admin()
        d = get_or_404(Domain, did, "Domain")
        return [s.to_dict() for s in d.subjects]

    # Subjects
    @app.get('/api/admin/subjects')
    def admin_subjects():
        require_admin()
        q = Subject.query
        if request.args.get('domain_id'):
            q = q.filter_by(domain_id=request.args.get('domain_id', type=int))
        return [dict(s.to_dict(), resource_count=len(s.resources)) for s in q.order_by(Subject.name).all()]

    def subject_parent(data):
        errors = {}
        domain_id = as_id(data.get('domain_id'), 'domain_id', errors)
        if domain_id is None or db.session.get(Domain, domain_id) is None:
            errors.setdefault('domain_id', "Please select a domain")
        if errors:
            raise ValidationError(errors)
        return domain_id

    @app.post('/api/admin/subjects')
    def admin_subjects_add():
        require_admin()
        data = body()
        s = Subject(name=required_name(data, "Subject"), domain_id=subject_parent(data),
                    description=(data.get('description') or '').strip() or None)
        db.session.add(s)
        db.session.commit()
        return s.to_dict(), 201

    @app.put('/api/admin/subjects/<int:sid>')
    def admin_subjects_update(sid):
        require_admin()
        s = get_or_404(Subject, sid, "Subject")
        data = body()
        if 'name' in data:
            s.name = required_name(data, "Subject")
        if 'domain_id' in data:
            s.domain_id = subject_parent(data)
        if 'description' in data:
            s.description = (data.get('description') or '').strip() or None
        db.session.commit()
        return s.to_dict()

    @app.delete('/api/admin/subjects/<int:sid>')
    def admin_subjects_delete(sid):
        require_admin()
        s = get_or_404(Subject, sid, "Subject")
        db.session.delete(s)
        db.session.commit()
        return {"message": "Subject deleted successfully"}

    # Skill and exam taxonomies
    @app.post('/api/admin/skill-categories')
    def admin_skill_categories_add():
        require_admin()
        c = SkillCategory(name=required_name(body(), "Skill category"))
        db.session.add(c)
        commit_or_conflict("Skill category already exists")
        return c.to_dict(), 201

    @app.put('/api/admin/skill-categories/<int:cid>')
    def admin_skill_categories_update(cid):
        require_admin()
        c = get_or_404(SkillCategory, cid, "Skill category")
        c.name = required_name(body(), "Skill category")
        commit_or_conflict("Skill category already exists")
        return c.to_dict()

    @app.delete('/api/admin/skill-categories/<int:cid>')
    def admin_skill_categories_delete(cid):
        require_admin()
        db.session.delete(get_or_404(SkillCategory, cid, "Skill category"))
        db.session.commit()
        return {"message": "Skill category deleted successfully"}

    def taxonomy_fields(data, category_model, levels, partial):
        errors = {}
        fields = {}
        if not partial or 'category_id' in data:
            category_id = as_id(data.get('category_id'), 'category_id', errors)
            if category_id is None or db.session.get(category_model, category_id) is None:
                errors.setdefault('category_id', "Please select a category")
            fields['category_id'] = category_id
        if 'level' in data:
            if data['level'] not in levels:
                errors['level'] = f"Level must be one of: {', '.join(levels)}"
            fields['level'] = data['level']
        if 'description' in data:
            fields['description'] = (data.get('description') or '').strip() or None
        if errors:
            raise ValidationError(errors)
        return fields

    @app.post('/api/admin/skills')
    def admin_skills_add():
        require_admin()
        data = body()
        s = Skill(name=required_name(data, "Skill"), **taxonomy_fields(data, SkillCategory, SKILL_LEVELS, False))
        db.session.add(s)
        db.session.commit()
        return s.to_dict(), 201

    @app.put('/api/admin/skills/<int:sid>')
    def admin_skills_update(sid):
        require_admin()
        s = get_or_404(Skill, sid, "Skill")
        data = body()
        if 'name' in data:
            s.name = required_name(data, "Skill")
        for key, value in taxonomy_fields(data, SkillCategory, SKILL_LEVELS, True).items():
            setattr(s, key, value)
        db.session.commit()
        return s.to_dict()

    @app.delete('/api/admin/skills/<int:sid>')
    def admin_skills_delete(sid):
        require_admin()
        db.session.delete(get_or_404(Skill, sid, "Skill"))
        db.session.commit()
        return {"message": "Skill deleted successfully"}

    @app.post('/api/admin/exam-categories')
    def admin_exam_categories_add():
        require_admin()
        c = ExamCategory(name=required_name(body(), "Exam category"))
        db.session.add(c)
        commit_or_conflict("Exam category already exists")
        return c.to_dict(), 201

    @app.put('/api/admin/exam-categories/<int:cid>')
    def admin_exam_categories_update(cid):
        require_admin()
        c = get_or_404(ExamCategory, cid, "Exam category")
        c.name = required_name(body(), "Exam category")
        commit_or_conflict("Exam category already exists")
        return c.to_dict()

    @app.delete('/api/admin/exam-categories/<int:cid>')
    def admin_exam_categories_delete(cid):
        require_admin()
        db.session.delete(get_or_404(ExamCategory, cid, "Exam category"))
        db.session.commit()
        return {"message": "Exam category deleted successfully"}

    @app.post('/api/admin/exams')
    def admin_exams_add():
        require_admin()
        data = body()
        e = Exam(name=required_name(data, "Exam"), **taxonomy_fields(data, ExamCategory, EXAM_LEVELS, False))
        db.session.add(e)
        db.session.commit()
        return e.to_dict(), 201

    @app.put('/api/admin/exams/<int:eid>')
    def admin_exams_update(eid):
        require_admin()
        e = get_or_404(Exam, eid, "Exam")
        data = body()
        if 'name' in data:
            e.name = required_name(data, "Exam")
        for key, value in taxonomy_fields(data, ExamCategory, EXAM_LEVELS, True).items():
            setattr(e, key, value)
        db.session.commit()
        return e.to_dict()

    @app.delete('/api/admin/exams/<int:eid>')
    def admin_exams_delete(eid):
        require_admin()
        db.session.delete(get_or_404(Exam, eid, "Exam"))
        db.session.commit()
        return {"message": "Exam deleted successfully"}

    # Resources
    @app.get('/api/admin/resources')
    def admin_resources():
        require_admin()
        q = Resource.query
        status = request.args.get('status')
        if status == 'pending':
            q = q.filter_by(is_approved=False)
        elif status == 'approved':
            q = q.filter_by(is_approved=True)
        return [r.to_dict() for r in q.order_by(Resource.created_at.desc(), Resource.id.desc()).all()]

    @app.get('/api/admin/resources/pending')
    def admin_resources_pending():
        require_admin()
        items = Resource.query.filter_by(is_approved=False) \
            .order_by(Resource.created_at.desc(), Resource.id.desc()).all()
        return [r.to_dict() for r in items]

    @app.post('/api/admin/resources')
    def admin_resources_add():
        admin = require_admin()
        data = body()
        resource = create_resource(data, admin, approved=bool(data.get('is_approved', True)))
        return resource.to_dict(), 201

    @app.put('/api/admin/resources/<int:rid>')
    def admin_resources_update(rid):
        require_admin()
        resource = get_or_404(Resource, rid, "Resource")
        return update_resource(resource, body(), allow_approval=True).to_dict()

    @app.put('/api/admin/resources/<int:rid>/approve')
    def admin_resources_approve(rid):
        require_admin()
        resource = approve(get_or_404(Resource, rid, "Resource"))
        return {"message": "Resource approved successfully", "resource": resource.to_dict()}

    @app.delete('/api/admin/resources/<int:rid>')
    def admin_resources_delete(rid):
        require_admin()
        db.session.delete(get_or_404(Resource, rid, "Resource"))
        db.session.commit()
        return {"message": "Resource deleted successfully"}

    # Users
    @app.get('/api/admin/users')
    def admin_users():
        require_admin()
        return [u.to_dict() for u in UserProfile.query.order_by(UserProfile.created_at.desc()).all()]

    @app.put('/api/admin/users/<int:uid>/role')
    def admin_users_role(uid):
        admin = require_admin()
        user = get_or_404(UserProfile, uid, "User")
        role = body().get('role')
        if role not in ROLES:
            raise ValidationError({"role": "Role must be 'user' or 'admin'"})
        if user.id == admin.id and role != 'admin':
            raise ValidationError({"role": "You cannot remove your own admin role"})
        user.role = role
        db.session.commit()
        logger.info("user %s role set to %s by %s", user.id, role, admin.id)
        return {"message": f"User role updated to {role}", "user": user.to_dict()}

    @app.delete('/api/admin/users/<int:uid>')
    def admin_users_delete(uid):
        admin = require_admin()
        user = get_or_404(UserProfile, uid, "User")
        if user.id == admin.id:
            raise ValidationError({"user": "You cannot delete your own account"})
        db.session.delete(user)
        db.session.commit()
        return {"message": "User deleted successfully"}

    # Requests
    @app.get('/api/admin/requests')
    def admin_requests():
        require_admin()
        q = ResourceRequest.query
        if request.args.get('status'):
            q = q.filter_by(status=request.args.get('status'))
        return [r.to_dict() for r in q.order_by(ResourceRequest.created_at.desc(), ResourceRequest.id.desc()).all()]

    @app.put('/api/admin/requests/<int:qid>/status')
    def admin_requests_status(qid):
        require_admin()
        req = get_or_404(ResourceRequest, qid, "Request")
        status = body().get('status')
        if status not in REQUEST_STATUSES:
            raise ValidationError({"status": f"Status must be one of: {', '.join(REQUEST_STATUSES)}"})
        req.status = status
        db.session.commit()
        return req.to_dict()

    return app

if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        db.create_all()
    app.run(host='0.0.0.0', port=app.config['PORT'], debug=app.config['ENV'] != 'production')
