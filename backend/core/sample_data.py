"""Built-in catalogue shown when the API cannot be reached.

Same shape as ``GET /api/catalog`` so the cache can treat both alike.
Ids are strings prefixed with ``sample-`` so they never collide with
database ids.
"""

SAMPLE_DATE = "2024-01-15T00:00:00"


def _resource(rid, title, description, url, rtype, submitted_by, **links):
    data = {
        "id": f"sample-{rid}",
        "title": title,
        "description": description,
        "url": url,
        "type": rtype,
        "is_approved": True,
        "submitted_by": {"id": None, "full_name": submitted_by},
        "created_at": SAMPLE_DATE,
        "updated_at": SAMPLE_DATE,
    }
    data.update(links)
    return data


def _subject(sid, name, university, domain, resources):
    links = {
        "university": university,
        "domain": domain,
        "subject": {"id": f"sample-{sid}", "name": name},
    }
    return {
        "id": f"sample-{sid}",
        "name": name,
        "resources": [_resource(*r, "university", submitted_by, **links) for *r, submitted_by in resources],
    }


_STANFORD = {"id": "sample-1", "name": "Stanford University"}
_MIT = {"id": "sample-2", "name": "MIT"}
_HARVARD = {"id": "sample-3", "name": "Harvard University"}
_CS = {"id": "sample-1", "name": "Computer Science"}


SAMPLE_CATALOG = {
    "universities": [
        {
            **_STANFORD,
            "domains": [{
                **_CS,
                "subjects": [
                    _subject("1", "Data Structures and Algorithms", _STANFORD, _CS, [
                        ("1", "Complete Data Structures Course",
                         "Comprehensive video course covering all major data structures with coding "
                         "examples and practice problems.",
                         "https://example.com/ds-course", "John Doe"),
                    ]),
                    _subject("2", "Database Management Systems", _STANFORD, _CS, []),
                ],
            }],
        },
        {
            **_MIT,
            "domains": [{
                **_CS,
                "subjects": [
                    _subject("3", "Machine Learning", _MIT, _CS, [
                        ("3", "Machine Learning Handbook",
                         "Complete guide to machine learning algorithms with Python implementations "
                         "and real-world examples.",
                         "https://example.com/ml-handbook", "Mike Johnson"),
                    ]),
                    _subject("6", "Computer Networks", _MIT, _CS, [
                        ("7", "Network Security Fundamentals",
                         "Understanding network protocols, security measures, and threat analysis.",
                         "https://example.com/network-security", "Robert Brown"),
                    ]),
                ],
            }],
        },
        {
            **_HARVARD,
            "domains": [{
                **_CS,
                "subjects": [_subject("5", "Software Engineering", _HARVARD, _CS, [])],
            }],
        },
    ],
    "skills": [
        _resource("2", "SQL Practice Platform",
                  "Interactive platform with hundreds of SQL problems ranging from beginner to advanced level.",
                  "https://example.com/sql-practice", "skill", "Jane Smith",
                  skill={"id": "sample-1", "name": "SQL", "category": "Data Science"}),
        _resource("4", "React.js Documentation",
                  "Official React documentation with tutorials, API reference, and best practices.",
                  "https://react.dev", "skill", "Sarah Wilson",
                  skill={"id": "sample-2", "name": "React", "category": "Web Development"}),
        _resource("6", "Agile Project Management",
                  "Learn agile methodologies, scrum framework, and project management best practices.",
                  "https://example.com/agile-pm", "skill", "Emma Davis",
                  skill={"id": "sample-3", "name": "Project Management", "category": "Management"}),
    ],
    "exams": [
        _resource("5", "Competitive Programming Guide",
                  "Essential algorithms and problem-solving techniques for coding competitions.",
                  "https://example.com/cp-guide", "competitive", "Alex Chen",
                  exam={"id": "sample-1", "name": "GATE", "category": "Engineering"}),
        _resource("8", "LeetCode Problem Solutions",
                  "Detailed solutions and explanations for popular coding interview questions.",
                  "https://example.com/leetcode-solutions", "competitive", "Lisa Garcia",
                  exam={"id": "sample-2", "name": "Placement Tests", "category": "Engineering"}),
    ],
}

COMMON_TERMS = [
    "algorithms", "data structures", "machine learning", "artificial intelligence",
    "database", "networking", "programming", "software engineering",
    "calculus", "linear algebra", "statistics", "probability",
    "physics", "chemistry", "biology", "mathematics",
    "business", "finance", "marketing", "management",
    "engineering", "computer science", "electrical", "mechanical",
]
