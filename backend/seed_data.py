"""Seed database with reference data and demo accounts."""
from sgms.database import Base, SessionLocal, engine
from sgms.models import Admin, Category, Faculty, Status, Student
from sgms.auth import get_password_hash

STATUSES = [
    {"name": "Pending", "color_code": "#FFA500", "display_order": 1},
    {"name": "In Progress", "color_code": "#2196F3", "display_order": 2},
    {"name": "Resolved", "color_code": "#4CAF50", "display_order": 3},
    {"name": "Closed", "color_code": "#9E9E9E", "display_order": 4},
    {"name": "Reopened", "color_code": "#F44336", "display_order": 5},
]

CATEGORIES = [
    {"name": "Academic", "description": "Courses, grading and examinations", "department": None},
    {"name": "Infrastructure", "description": "Classrooms, labs and campus facilities", "department": None},
    {"name": "Hostel", "description": "Accommodation and mess services", "department": None},
    {"name": "Library", "description": "Books, journals and library access", "department": None},
    {"name": "Administration", "description": "Fees, certificates and office procedures", "department": None},
]


def _get_or_create(db, model, lookup: dict, values: dict):
    row = db.query(model).filter_by(**lookup).first()
    if row:
        return row, False
    row = model(**lookup, **values)
    db.add(row)
    return row, True


def seed():
    """Seed database with demo data (safe to run repeatedly)."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        for status in STATUSES:
            _get_or_create(db, Status, {"name": status["name"]}, {
                "color_code": status["color_code"],
                "display_order": status["display_order"],
            })

        for category in CATEGORIES:
            _get_or_create(db, Category, {"name": category["name"]}, {
                "description": category["description"],
                "department": category["department"],
                "is_active": True,
            })

        _get_or_create(db, Admin, {"email": "admin@sgms.edu"}, {
            "name": "System Administrator",
            "password_hash": get_password_hash("Admin123"),
            "department": "Administration",
            "is_active": True,
        })
        _get_or_create(db, Faculty, {"email": "faculty@sgms.edu"}, {
            "name": "Dr. Asha Rao",
            "password_hash": get_password_hash("Faculty123"),
            "employee_id": "EMP001",
            "department": "Computer Science",
            "designation": "Associate Professor",
            "is_active": True,
        })
        _get_or_create(db, Student, {"email": "student@sgms.edu"}, {
            "name": "Rahul Verma",
            "password_hash": get_password_hash("Student123"),
            "enrollment_no": "CS2024001",
            "department": "Computer Science",
            "is_active": True,
        })

        db.commit()
        print("Database seeded successfully!")
        print("\nDemo accounts:")
        print("  admin@sgms.edu / Admin123 (admin)")
        print("  faculty@sgms.edu / Faculty123 (faculty)")
        print("  student@sgms.edu / Student123 (student)")

    except Exception as e:
        db.rollback()
        print(f"Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
