import logging

import click

from models import (
    db, University, Domain, Subject, SkillCategory, Skill, ExamCategory, Exam, Resource, UserProfile,
)

logger = logging.getLogger(__name__)

UNIVERSITIES = [
    ("Harvard University", "United States"),
    ("Yale University", "United States"),
    ("Princeton University", "United States"),
    ("Columbia University", "United States"),
    ("Cornell University", "United States"),
    ("Massachusetts Institute of Technology (MIT)", "United States"),
    ("Stanford University", "United States"),
    ("California Institute of Technology (Caltech)", "United States"),
    ("Carnegie Mellon University", "United States"),
    ("Georgia Institute of Technology", "United States"),
    ("University of California, Berkeley", "United States"),
    ("University of Illinois Urbana-Champaign", "United States"),
    ("University of Michigan", "United States"),
    ("University of Texas at Austin", "United States"),
    ("University of Washington", "United States"),
    ("University of Oxford", "United Kingdom"),
    ("University of Cambridge", "United Kingdom"),
    ("Imperial College London", "United Kingdom"),
    ("University College London (UCL)", "United Kingdom"),
    ("University of Edinburgh", "United Kingdom"),
    ("Indian Institute of Technology Delhi", "India"),
    ("Indian Institute of Technology Bombay", "India"),
    ("Indian Institute of Science Bangalore", "India"),
]

SUBJECTS_BY_DOMAIN = {
    "Computer Science": ["Data Structures and Algorithms", "Database Management Systems", "Operating Systems",
                         "Computer Networks", "Machine Learning"],
    "Electrical Engineering": ["Circuit Analysis", "Signals and Systems", "Digital Electronics"],
    "Mechanical Engineering": ["Thermodynamics", "Fluid Mechanics", "Engineering Mechanics"],
    "Business Administration": ["Financial Accounting", "Marketing Management", "Organizational Behavior"],
    "Mathematics": ["Calculus", "Linear Algebra", "Probability and Statistics"],
}

SKILLS = {
    "Programming Languages": ["JavaScript", "Python", "Java", "C++"],
    "Web Development": ["React", "Angular", "Vue.js", "Node.js"],
    "Data Science": ["Machine Learning", "Data Analysis", "SQL", "R Programming"],
    "Design": ["UI/UX Design", "Graphic Design", "Figma", "Adobe Creative Suite"],
}

EXAMS = {
    "Engineering": ["JEE Main", "JEE Advanced", "GATE", "BITSAT"],
    "Medical": ["NEET", "AIIMS", "JIPMER"],
    "Management": ["CAT", "XAT", "GMAT", "GRE"],
    "Government Jobs": ["UPSC Civil Services", "SSC CGL", "Banking PO", "Railway Recruitment"],
}

DEMO_RESOURCES = [
    ("Data Structures and Algorithms", "subject", "Complete Data Structures Course",
     "Comprehensive video course covering all major data structures with coding examples and practice problems.",
     "https://example.com/ds-course"),
    ("Machine Learning", "subject", "Machine Learning Handbook",
     "Complete guide to machine learning algorithms with Python implementations and real-world examples.",
     "https://example.com/ml-handbook"),
    ("Calculus", "subject", "Calculus Lecture Notes",
     "Lecture notes on limits, derivatives and integrals with worked examples.",
     "https://example.com/calculus-notes"),
    ("SQL", "skill", "SQL Practice Platform",
     "Interactive platform with hundreds of SQL problems ranging from beginner to advanced level.",
     "https://example.com/sql-practice"),
    ("React", "skill", "React.js Documentation",
     "Official React documentation with tutorials, API reference, and best practices.",
     "https://react.dev"),
    ("GATE", "exam", "GATE Previous Year Papers",
     "Solved question papers from the last ten years of the GATE examination.",
     "https://example.com/gate-papers"),
    ("CAT", "exam", "CAT Quantitative Aptitude Guide",
     "Essential shortcuts and practice sets for the quantitative section of CAT.",
     "https://example.com/cat-quant"),
]


def seed_universities():
    """Insert any missing universities; returns how many were added."""
    existing = {name for (name,) in db.session.query(University.name).all()}
    added = 0
    for name, country in UNIVERSITIES:
        if name not in existing:
            db.session.add(University(name=name, country=country))
            added += 1
    db.session.commit()
    logger.info("added %s universities (%s total)", added, University.query.count())
    return added


def seed_taxonomies():
    for category_name, names in SKILLS.items():
        category = SkillCategory.query.filter_by(name=category_name).first()
        if not category:
            category = SkillCategory(name=category_name)
            db.session.add(category)
        known = {s.name for s in category.skills}
        for name in names:
            if name not in known:
                category.skills.append(Skill(name=name))
    for category_name, names in EXAMS.items():
        category = ExamCategory.query.filter_by(name=category_name).first()
        if not category:
            category = ExamCategory(name=category_name)
            db.session.add(category)
        known = {e.name for e in category.exams}
        for name in names:
            if name not in known:
                category.exams.append(Exam(name=name))
    db.session.commit()


def seed_demo(reset=False):
    """Populate a small, browsable data set: three domains per university,
    their subjects, the skill/exam taxonomies and a few approved resources."""
    if reset:
        for model in (Resource, Subject, Domain, University, Skill, SkillCategory, Exam, ExamCategory):
            for obj in model.query.all():
                db.session.delete(obj)
        db.session.commit()
        logger.info("cleared existing catalogue data")

    seed_universities()
    seed_taxonomies()

    domain_names = list(SUBJECTS_BY_DOMAIN)
    for i, university in enumerate(University.query.order_by(University.id).all()):
        if university.domains:
            continue
        for offset in range(3):
            name = domain_names[(i + offset) % len(domain_names)]
            domain = Domain(name=name, university=university)
            domain.subjects = [Subject(name=s) for s in SUBJECTS_BY_DOMAIN[name]]
            db.session.add(domain)
    db.session.commit()

    created = 0
    for target, kind, title, description, url in DEMO_RESOURCES:
        if Resource.query.filter_by(title=title).first():
            continue
        resource = Resource(title=title, description=description, url=url, is_approved=True)
        if kind == "subject":
            subject = Subject.query.filter_by(name=target).order_by(Subject.id).first()
            if subject is None:
                continue
            resource.subject_id = subject.id
        elif kind == "skill":
            resource.skill_id = Skill.query.filter_by(name=target).first().id
        else:
            resource.exam_id = Exam.query.filter_by(name=target).first().id
        db.session.add(resource)
        created += 1
    db.session.commit()
    logger.info("demo data ready, %s resources created", created)
    return created


def promote_admin(email):
    user = UserProfile.query.filter_by(email=email).first()
    if user is None:
        return None
    user.role = "admin"
    db.session.commit()
    return user


def register_commands(app):
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables."""
        db.create_all()
        click.echo("Database tables created")

    @app.cli.command("seed-universities")
    def seed_universities_command():
        """Add the bundled university list."""
        added = seed_universities()
        click.echo(f"Added {added} new universities")

    @app.cli.command("seed-demo")
    @click.option("--reset", is_flag=True, help="Delete the existing catalogue first.")
    def seed_demo_command(reset):
        """Load demo domains, subjects, skills, exams and resources."""
        db.create_all()
        created = seed_demo(reset=reset)
        click.echo(f"Demo data loaded ({created} resources created)")

    @app.cli.command("create-admin")
    @click.argument("email")
    def create_admin_command(email):
        """Give an existing user the admin role."""
        user = promote_admin(email)
        if user is None:
            raise click.ClickException(f"No user with email {email}; sign in once first")
        click.echo(f"{email} is now an admin")
