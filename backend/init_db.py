# init_db.py (in backend folder)

from sqlalchemy import inspect

from vanishchat.infra.database import drop_db, engine, init_db
from vanishchat.utils.logger import setup_logger


def reset_db():
    """Drop and recreate all tables"""
    setup_logger()
    print("⚠️  Dropping all tables...")
    drop_db()
    print("✓ Tables dropped")

    print("📦 Creating tables...")
    init_db()
    print("✅ Database initialized successfully!")

    # Print created tables
    inspector = inspect(engine)
    tables = inspector.get_table_names()
    print(f"\nCreated tables: {tables}")

    for table in tables:
        columns = inspector.get_columns(table)
        print(f"\n{table}:")
        for col in columns:
            print(f"  - {col['name']}: {col['type']}")


if __name__ == "__main__":
    reset_db()
