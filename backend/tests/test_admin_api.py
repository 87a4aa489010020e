"""
Admin CRUD over the hierarchy, taxonomies, users and requests
"""
import pytest

from conftest import make_resource, make_user
from models import db, Domain, Subject, Resource, ResourceRequest, University, UserProfile


class TestAccess:
    @pytest.mark.parametrize("path", [
        "/api/admin/dashboard", "/api/admin/universities", "/api/admin/resources", "/api/admin/users",
    ])
    def test_requires_token(self, client, path):
        assert client.get(path).status_code == 401

    def test_regular_users_are_forbidden(self, client, user_headers):
        response = client.get("/api/admin/dashboard", headers=user_headers)

        assert response.status_code == 403
        assert response.get_json()["error"] == "forbidden"

    def test_role_is_checked_against_the_database(self, app, client):
        """A token minted while the user was admin stops working once demoted"""
        former_admin = make_user(app, role="admin")
        with app.app_context():
            db.session.get(UserProfile, former_admin["id"]).role = "user"
            db.session.commit()

        response = client.get("/api/admin/dashboard", headers={"x-auth-token": former_admin["token"]})

        assert response.status_code == 403

    def test_dashboard(self, app, client, admin, admin_headers, hierarchy):
        make_resource(app, subject_id=hierarchy["subject_id"])
        make_resource(app, approved=False, skill_id=hierarchy["skill_id"])

        data = client.get("/api/admin/dashboard", headers=admin_headers).get_json()

        assert data["admin"]["id"] == admin["id"]
        assert data["stats"]["resources"] == 2
        assert data["stats"]["pendingResources"] == 1
        assert data["stats"]["universities"] == 2
        assert data["stats"]["subjects"] == 3


class TestUniversities:
    def test_create_update_list(self, client, admin_headers):
        response = client.post("/api/admin/universities", json={"name": "  IIT Madras ", "country": "India"},
                               headers=admin_headers)
        assert response.status_code == 201
        uid = response.get_json()["id"]
        assert response.get_json()["name"] == "IIT Madras"

        client.put(f"/api/admin/universities/{uid}", json={"name": "IIT Madras (Chennai)"}, headers=admin_headers)

        listed = client.get("/api/admin/universities", headers=admin_headers).get_json()
        assert [(u["name"], u["domain_count"]) for u in listed] == [("IIT Madras (Chennai)", 0)]
        assert client.get("/api/universities").get_json() == [{"id": uid, "name": "IIT Madras (Chennai)"}]

    def test_name_is_required(self, client, admin_headers):
        response = client.post("/api/admin/universities", json={"name": "   "}, headers=admin_headers)

        assert response.status_code == 400
        assert response.get_json()["errors"] == {"name": "University name is required"}

    def test_duplicate_name_conflicts(self, client, admin_headers):
        client.post("/api/admin/universities", json={"name": "IIT Madras"}, headers=admin_headers)

        response = client.post("/api/admin/universities", json={"name": "IIT Madras"}, headers=admin_headers)

        assert response.status_code == 409

    def test_delete_removes_domains_subjects_and_resources(self, app, client, admin_headers, hierarchy):
        rid = make_resource(app, subject_id=hierarchy["subject_id"])

        response = client.delete(f"/api/admin/universities/{hierarchy['university_id']}", headers=admin_headers)

        assert response.status_code == 200
        with app.app_context():
            assert db.session.get(University, hierarchy["university_id"]) is None
            assert db.session.get(Domain, hierarchy["domain_id"]) is None
            assert db.session.get(Subject, hierarchy["subject_id"]) is None
            assert db.session.get(Subject, hierarchy["second_subject_id"]) is None
            assert db.session.get(Resource, rid) is None
            # the other university is untouched
            assert db.session.get(Subject, hierarchy["other_subject_id"]) is not None
        assert client.get(f"/api/universities/{hierarchy['university_id']}/domains").get_json() == []

    def test_delete_missing_university(self, client, admin_headers):
        assert client.delete("/api/admin/universities/999", headers=admin_headers).status_code == 404


class TestDomainsAndSubjects:
    def test_create_domain_needs_existing_university(self, client, admin_headers):
        response = client.post("/api/admin/domains", json={"name": "Law", "university_id": 42},
                               headers=admin_headers)

        assert response.status_code == 400
        assert "university_id" in response.get_json()["errors"]

    def test_create_domain_and_subject(self, client, admin_headers, hierarchy):
        domain = client.post("/api/admin/domains", json={"name": "Law", "university_id": hierarchy["university_id"]},
                             headers=admin_headers).get_json()
        subject = client.post("/api/admin/subjects", json={"name": "Contracts", "domain_id": domain["id"]},
                              headers=admin_headers).get_json()

        assert domain["university"]["name"] == "Test University"
        assert subject["domain"]["university"]["id"] == hierarchy["university_id"]
        assert client.get(f"/api/domains/{domain['id']}/subjects").get_json() == [
            {"id": subject["id"], "name": "Contracts"}]

    def test_deleting_domain_with_two_subjects_empties_its_subject_list(self, app, client, admin_headers,
                                                                        hierarchy):
        domain_id = hierarchy["domain_id"]
        assert len(client.get(f"/api/domains/{domain_id}/subjects").get_json()) == 2

        response = client.delete(f"/api/admin/domains/{domain_id}", headers=admin_headers)

        assert response.status_code == 200
        assert client.get(f"/api/domains/{domain_id}/subjects").get_json() == []
        with app.app_context():
            assert Subject.query.filter_by(domain_id=domain_id).count() == 0

    def test_filter_domains_by_university(self, client, admin_headers, hierarchy):
        data = client.get(f"/api/admin/domains?university_id={hierarchy['other_university_id']}",
                          headers=admin_headers).get_json()

        assert [(d["name"], d["subject_count"]) for d in data] == [("Physics", 1)]

    def test_move_subject_to_another_domain(self, client, admin_headers, hierarchy):
        response = client.put(f"/api/admin/subjects/{hierarchy['second_subject_id']}",
                              json={"domain_id": hierarchy["other_domain_id"]}, headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["domain_id"] == hierarchy["other_domain_id"]

    def test_deleting_subject_keeps_requests_but_clears_link(self, app, client, admin_headers, hierarchy, user):
        with app.app_context():
            req = ResourceRequest(user_id=user["id"], title="Notes please", type="university",
                                  description="Please add notes for this subject soon.",
                                  subject_id=hierarchy["subject_id"])
            db.session.add(req)
            db.session.commit()
            req_id = req.id

        client.delete(f"/api/admin/subjects/{hierarchy['subject_id']}", headers=admin_headers)

        with app.app_context():
            assert db.session.get(ResourceRequest, req_id).subject_id is None


class TestTaxonomies:
    def test_skill_crud(self, client, admin_headers):
        category = client.post("/api/admin/skill-categories", json={"name": "Cloud"},
                               headers=admin_headers).get_json()
        skill = client.post("/api/admin/skills", json={"name": "Kubernetes", "category_id": category["id"],
                                                       "level": "Advanced"}, headers=admin_headers)
        assert skill.status_code == 201
        sid = skill.get_json()["id"]

        client.put(f"/api/admin/skills/{sid}", json={"level": "Intermediate"}, headers=admin_headers)

        listed = client.get(f"/api/skills/categories/{category['id']}/skills").get_json()
        assert listed == [{"id": sid, "name": "Kubernetes", "level": "Intermediate"}]
        assert client.delete(f"/api/admin/skills/{sid}", headers=admin_headers).status_code == 200

    def test_skill_level_is_validated(self, client, admin_headers, hierarchy):
        response = client.post("/api/admin/skills", json={"name": "Go", "category_id": hierarchy["skill_category_id"],
                                                          "level": "Wizard"}, headers=admin_headers)

        assert response.status_code == 400
        assert "level" in response.get_json()["errors"]

    def test_exam_crud(self, client, admin_headers, hierarchy):
        response = client.post("/api/admin/exams", json={"name": "JEE Main", "category_id": hierarchy["exam_category_id"]},
                               headers=admin_headers)

        assert response.status_code == 201
        assert response.get_json()["level"] == "National"
        names = [e["name"] for e in client.get("/api/exams").get_json()]
        assert names == ["GATE", "JEE Main"]

    def test_deleting_exam_category_removes_exams_and_their_resources(self, app, client, admin_headers, hierarchy):
        rid = make_resource(app, exam_id=hierarchy["exam_id"])

        client.delete(f"/api/admin/exam-categories/{hierarchy['exam_category_id']}", headers=admin_headers)

        assert client.get("/api/exams").get_json() == []
        with app.app_context():
            assert db.session.get(Resource, rid) is None

    def test_duplicate_category(self, client, admin_headers):
        client.post("/api/admin/exam-categories", json={"name": "Medical"}, headers=admin_headers)
        assert client.post("/api/admin/exam-categories", json={"name": "Medical"},
                           headers=admin_headers).status_code == 409


class TestAdminResources:
    def test_admin_created_resource_defaults_to_approved(self, client, admin_headers, resource_payload):
        data = client.post("/api/admin/resources", json=resource_payload, headers=admin_headers).get_json()
        assert data["is_approved"] is True

    def test_admin_can_unapprove(self, app, client, admin_headers, hierarchy):
        rid = make_resource(app, subject_id=hierarchy["subject_id"])

        data = client.put(f"/api/admin/resources/{rid}", json={"is_approved": False}, headers=admin_headers).get_json()

        assert data["is_approved"] is False
        assert client.get("/api/resources").get_json() == []

    def test_status_filter(self, app, client, admin_headers, hierarchy):
        make_resource(app, subject_id=hierarchy["subject_id"])
        pending = make_resource(app, approved=False, subject_id=hierarchy["subject_id"])

        data = client.get("/api/admin/resources?status=pending", headers=admin_headers).get_json()

        assert [r["id"] for r in data] == [pending]


class TestUsers:
    def test_promote_user(self, client, admin_headers, user):
        response = client.put(f"/api/admin/users/{user['id']}/role", json={"role": "admin"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["user"]["role"] == "admin"
        assert client.get("/api/admin/dashboard", headers={"x-auth-token": user["token"]}).status_code == 200

    def test_invalid_role(self, client, admin_headers, user):
        response = client.put(f"/api/admin/users/{user['id']}/role", json={"role": "owner"}, headers=admin_headers)
        assert response.status_code == 400

    def test_admin_cannot_demote_or_delete_self(self, client, admin, admin_headers):
        assert client.put(f"/api/admin/users/{admin['id']}/role", json={"role": "user"},
                          headers=admin_headers).status_code == 400
        assert client.delete(f"/api/admin/users/{admin['id']}", headers=admin_headers).status_code == 400

    def test_delete_user_keeps_their_resources(self, app, client, admin_headers, user, hierarchy):
        rid = make_resource(app, subject_id=hierarchy["subject_id"], submitted_by=user["id"])

        assert client.delete(f"/api/admin/users/{user['id']}", headers=admin_headers).status_code == 200

        with app.app_context():
            assert db.session.get(UserProfile, user["id"]) is None
            assert db.session.get(Resource, rid).submitted_by is None


class TestRequests:
    def test_update_status(self, app, client, admin_headers, user, hierarchy):
        with app.app_context():
            req = ResourceRequest(user_id=user["id"], title="Rust course", type="skill", skill_name="Rust",
                                  description="Any good free course on Rust ownership?")
            db.session.add(req)
            db.session.commit()
            req_id = req.id

        response = client.put(f"/api/admin/requests/{req_id}/status", json={"status": "completed"},
                              headers=admin_headers)

        assert response.get_json()["status"] == "completed"
        assert client.get("/api/stats").get_json()["totalRequests"] == 1
        filtered = client.get("/api/admin/requests?status=pending", headers=admin_headers).get_json()
        assert filtered == []

    def test_invalid_status(self, app, client, admin_headers, user):
        with app.app_context():
            req = ResourceRequest(user_id=user["id"], title="x", type="skill", skill_name="Go",
                                  description="Looking for Go concurrency material.")
            db.session.add(req)
            db.session.commit()
            req_id = req.id

        response = client.put(f"/api/admin/requests/{req_id}/status", json={"status": "fulfilled"},
                              headers=admin_headers)

        assert response.status_code == 400
