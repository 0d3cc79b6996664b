"""
Initialize database: creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed-demo]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from societyguard.database import create_tables, engine, SessionLocal
from societyguard.config import settings
from societyguard.models import Camera, Society, User
from societyguard.utils.time_utils import utc_now


def seed_demo():
    """One demo society with a camera and an admin, so reports have a recipient."""
    db = SessionLocal()
    try:
        society = db.query(Society).filter(Society.code == "C01").first()
        if society is None:
            society = Society(code="C01", name="Demo Residency", active=True, created_at=utc_now())
            db.add(society)
            db.flush()
        if not db.query(Camera).filter(Camera.camera_id == "CAM-GATE-1").first():
            db.add(Camera(camera_id="CAM-GATE-1", name="Main Gate", location="Tower A entrance",
                          society_id=society.id, created_at=utc_now()))
        if not db.query(User).filter(User.email == "admin@demo.local").first():
            db.add(User(name="Demo Admin", email="admin@demo.local", role="admin",
                        society_id=society.id, is_active=True))
        db.commit()
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create SocietyGuard tables")
    parser.add_argument("--seed-demo", action="store_true", help="Insert a demo society, camera and admin")
    args = parser.parse_args()

    print("🗄️  SocietyGuard DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running and DATABASE_URL is correct.")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print("✅ All tables created")

    if args.seed_demo:
        seed_demo()
        print("🌱 Demo society C01 seeded")

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn societyguard.main:app --host 0.0.0.0 --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
