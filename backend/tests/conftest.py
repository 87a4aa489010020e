"""
CachedInfo - Test Configuration and Fixtures

No app context is held open while a test runs: Flask would reuse it for every
test-client request and ``g`` (where the signed-in user is cached) would leak
between requests. Fixtures therefore hand out ids and tokens, and tests open
a short ``app.app_context()`` when they need to look at the database.
"""
import httpx
import pytest
from faker import Faker

from app import create_app
from auth import issue_token
from config import TestConfig
from core.client import ApiClient, ApiError
from models import (
    db, University, Domain, Subject, SkillCategory, Skill, ExamCategory, Exam, Resource, UserProfile,
)

fake = Faker()


@pytest.fixture
def app():
    """Fresh application with an empty in-memory database"""
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(app, role="user", **fields):
    with app.app_context():
        user = UserProfile(
            uid=fields.get("uid") or fake.uuid4(),
            email=fields.get("email") or fake.unique.email(),
            full_name=fields.get("full_name") or fake.name(),
            role=role,
        )
        db.session.add(user)
        db.session.commit()
        return {"id": user.id, "email": user.email, "token": issue_token(user)}


@pytest.fixture
def user(app):
    return make_user(app)


@pytest.fixture
def other_user(app):
    return make_user(app)


@pytest.fixture
def admin(app):
    return make_user(app, role="admin")


@pytest.fixture
def user_headers(user):
    return {"x-auth-token": user["token"]}


@pytest.fixture
def admin_headers(admin):
    return {"x-auth-token": admin["token"]}


@pytest.fixture
def hierarchy(app):
    """One university with a two-subject domain, plus one skill and one exam"""
    with app.app_context():
        university = University(name="Test University", country="India")
        domain = Domain(name="Computer Science", university=university)
        algorithms = Subject(name="Algorithms", domain=domain)
        databases = Subject(name="Databases", domain=domain)
        other_university = University(name="Other University")
        other_domain = Domain(name="Physics", university=other_university)
        optics = Subject(name="Optics", domain=other_domain)
        skill_category = SkillCategory(name="Programming")
        python = Skill(name="Python", category=skill_category)
        exam_category = ExamCategory(name="Engineering")
        gate = Exam(name="GATE", category=exam_category)
        db.session.add_all([university, other_university, skill_category, exam_category])
        db.session.commit()
        return {
            "university_id": university.id,
            "domain_id": domain.id,
            "subject_id": algorithms.id,
            "second_subject_id": databases.id,
            "other_university_id": other_university.id,
            "other_domain_id": other_domain.id,
            "other_subject_id": optics.id,
            "skill_category_id": skill_category.id,
            "skill_id": python.id,
            "exam_category_id": exam_category.id,
            "exam_id": gate.id,
        }


def make_resource(app, approved=True, submitted_by=None, **fields):
    with app.app_context():
        resource = Resource(
            title=fields.pop("title", None) or fake.sentence(nb_words=4).rstrip("."),
            description=fields.pop("description", None) or fake.paragraph(nb_sentences=2),
            url=fields.pop("url", None) or fake.url(),
            is_approved=approved,
            submitted_by=submitted_by,
            **fields,
        )
        db.session.add(resource)
        db.session.commit()
        return resource.id


@pytest.fixture
def resource_payload(hierarchy):
    return {
        "title": "Graph Algorithms Notes",
        "description": "Lecture notes on BFS, DFS and shortest paths.",
        "url": "https://example.com/graphs",
        "type": "university",
        "university_id": hierarchy["university_id"],
        "domain_id": hierarchy["domain_id"],
        "subject_id": hierarchy["subject_id"],
    }


@pytest.fixture
def api_client(app):
    """ApiClient talking to the test app in-process"""
    api = ApiClient(base_url="http://testserver", transport=httpx.WSGITransport(app=app))
    yield api
    api.close()


@pytest.fixture
def offline_client():
    """ApiClient whose every call fails at the transport level"""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = ApiClient(base_url="http://offline", transport=httpx.MockTransport(handler))
    yield api
    api.close()


class FakeClient:
    """In-memory stand-in for ApiClient used by the form and selector tests"""

    UNIVERSITIES = [{"id": 1, "name": "MIT"}, {"id": 2, "name": "Stanford University"}]
    DOMAINS = {1: [{"id": 10, "name": "Computer Science"}], 2: [{"id": 20, "name": "Mathematics"}]}
    SUBJECTS = {10: [{"id": 100, "name": "Algorithms"}, {"id": 101, "name": "Databases"}],
                20: [{"id": 200, "name": "Calculus"}]}
    SKILL_CATEGORIES = [{"id": 1, "name": "Programming"}]
    SKILLS = {1: [{"id": 11, "name": "Python", "level": "Beginner"}]}
    EXAM_CATEGORIES = [{"id": 1, "name": "Engineering"}]
    EXAMS = {1: [{"id": 21, "name": "GATE", "level": "National"}]}

    def __init__(self):
        self.calls = []
        self.failing = set()
        self.submitted = []
        self.requests = []
        self.submit_error = None

    def _call(self, name, arg=None):
        self.calls.append((name, arg))
        if name in self.failing:
            raise ApiError(f"{name} failed", status=503)

    def universities(self):
        self._call("universities")
        return list(self.UNIVERSITIES)

    def domains(self, university_id):
        self._call("domains", university_id)
        return list(self.DOMAINS.get(university_id, []))

    def subjects(self, domain_id):
        self._call("subjects", domain_id)
        return list(self.SUBJECTS.get(domain_id, []))

    def skill_categories(self):
        self._call("skill_categories")
        return list(self.SKILL_CATEGORIES)

    def skills(self, category_id):
        self._call("skills", category_id)
        return list(self.SKILLS.get(category_id, []))

    def exam_categories(self):
        self._call("exam_categories")
        return list(self.EXAM_CATEGORIES)

    def exams(self, category_id):
        self._call("exams", category_id)
        return list(self.EXAMS.get(category_id, []))

    def submit_resource(self, payload):
        self._call("submit_resource", payload)
        if self.submit_error:
            raise self.submit_error
        self.submitted.append(payload)
        return dict(payload, id=len(self.submitted), is_approved=False)

    def submit_request(self, payload):
        self._call("submit_request", payload)
        if self.submit_error:
            raise self.submit_error
        self.requests.append(payload)
        return {"message": "Request submitted successfully", "request": dict(payload, id=len(self.requests))}


@pytest.fixture
def fake_client():
    return FakeClient()
