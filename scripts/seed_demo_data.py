#!/usr/bin/env python3
"""Seed demo posters, workers, jobs in every state, and a few notifications.

Creates 3 posters and 3 workers (password ``Password123!``) and 20 jobs:
7 open, 7 active and 6 completed. Users are reused when they already exist,
so re-running without --reset only adds another batch of jobs.

Run inside Docker:
    docker compose exec backend python scripts/seed_demo_data.py --reset

Or locally:
    python scripts/seed_demo_data.py
"""

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add backend to path
script_dir = Path(__file__).resolve().parent
project_root = script_dir.parent
backend_dir = project_root / "backend"
if backend_dir.exists():
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import delete, select

from wageconnect.models import Base, Job, Notification, User, WishlistEntry
from wageconnect.models.base import AsyncSessionLocal, engine
from wageconnect.models.job import STATUS_OPEN, STATUS_ACTIVE, STATUS_COMPLETED
from wageconnect.services.auth_service import hash_password

DEMO_PASSWORD = "Password123!"

USERS = [
    {"name": "Alice Johnson", "email": "alice@example.com", "role": "user", "wallet_balance": 120.5},
    {"name": "Bob Smith", "email": "bob@example.com", "role": "user", "wallet_balance": 340.0},
    {"name": "Clara Lee", "email": "clara@example.com", "role": "user", "wallet_balance": 75.25},
    {"name": "Ravi Kumar", "email": "ravi@example.com", "role": "worker", "wallet_balance": 58.0},
    {"name": "Fatima Noor", "email": "fatima@example.com", "role": "worker", "wallet_balance": 214.7},
    {"name": "Diego Morales", "email": "diego@example.com", "role": "worker", "wallet_balance": 132.3},
]

JOBS = [
    ("House Painting", "Paint a 2BHK apartment with materials provided.", 120, "Salt Lake, Kolkata, WB"),
    ("Garden Cleanup", "Clean backyard, remove weeds, trim bushes.", 60, "Baner, Pune, MH"),
    ("Furniture Assembly", "Assemble a wardrobe and a desk.", 45, "HSR Layout, Bengaluru, KA"),
    ("Appliance Installation", "Install washing machine and check plumbing.", 70, "Gachibowli, Hyderabad, TS"),
    ("Warehouse Helper", "Load and unload boxes for 1 day.", 55, "Okhla, New Delhi, DL"),
    ("Event Setup Crew", "Help set up small exhibition stalls.", 80, "Park Street, Kolkata, WB"),
    ("Cleaning Service", "Deep clean kitchen and two bathrooms.", 50, "Andheri West, Mumbai, MH"),
    ("Basic Electrical Work", "Replace switches and fix a ceiling light.", 40, "Velachery, Chennai, TN"),
    ("Office Errand Runner", "Deliver documents across 3 locations.", 35, "Connaught Place, New Delhi, DL"),
    ("Car Wash and Polish", "Wash and exterior detailing for 2 cars.", 30, "Kothrud, Pune, MH"),
    ("Plumbing Assistance", "Fix a leaking tap and inspect pipes.", 50, "Whitefield, Bengaluru, KA"),
    ("Roof Repair Helper", "Assist roofer with minor fixes.", 65, "Madhapur, Hyderabad, TS"),
    ("Store Inventory Count", "Count items and update spreadsheet.", 45, "T Nagar, Chennai, TN"),
    ("Courier Pickup/Drop", "Pick up a parcel and deliver within city.", 25, "Bandra, Mumbai, MH"),
    ("Gardening - New Plants", "Plant saplings and set up drip irrigation.", 70, "Aundh, Pune, MH"),
    ("Home Shifting Helper", "Help pack and move boxes.", 90, "Koramangala, Bengaluru, KA"),
    ("Wedding Hall Cleanup", "Post-event cleanup for 6 hours.", 85, "Nungambakkam, Chennai, TN"),
    ("Small Painting Touch-ups", "Patch paint in living room.", 35, "Jubilee Hills, Hyderabad, TS"),
    ("AC Filter Cleaning", "Clean two AC filters and service.", 55, "Powai, Mumbai, MH"),
    ("Kitchen Exhaust Cleaning", "Degrease and clean exhaust hood.", 50, "Salt Lake, Kolkata, WB"),
]


def parse_args():
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--reset", action="store_true", help="Delete all existing data first")
    return parser.parse_args()


async def seed(reset: bool):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        if reset:
            print("Reset flag detected, clearing tables...")
            for model in (WishlistEntry, Notification, Job, User):
                await db.execute(delete(model))
            await db.commit()

        hashed = hash_password(DEMO_PASSWORD)
        users = []
        for entry in USERS:
            user = (await db.execute(select(User).where(User.email == entry["email"]))).scalar_one_or_none()
            if user is None:
                user = User(hashed_password=hashed, **entry)
                db.add(user)
            users.append(user)
        await db.flush()

        posters = [u for u in users if u.role == "user"]
        workers = [u for u in users if u.role == "worker"]
        now = datetime.now(timezone.utc)

        jobs = []
        for idx, (title, description, wage, location) in enumerate(JOBS):
            # First 7 open, next 7 active, last 6 completed
            if idx < 7:
                status, worker = STATUS_OPEN, None
            elif idx < 14:
                status, worker = STATUS_ACTIVE, workers[idx % len(workers)]
            else:
                status, worker = STATUS_COMPLETED, workers[idx % len(workers)]

            jobs.append(Job(
                title=title,
                description=description,
                wage=wage,
                location=location,
                deadline=now + timedelta(days=3 + idx % 10),
                status=status,
                posted_by_id=posters[idx % len(posters)].id,
                applied_by_id=worker.id if worker else None,
                # Spread completions over recent months so the earnings chart has shape
                completed_at=now - timedelta(days=30 * (idx - 14)) if status == STATUS_COMPLETED else None,
            ))
        db.add_all(jobs)
        await db.flush()

        notifications = []
        for job in jobs:
            if job.status == STATUS_ACTIVE:
                worker_name = next(w.name for w in workers if w.id == job.applied_by_id)
                notifications.append(Notification(
                    type="Job Application",
                    message=f"Applied by {worker_name} for {job.title}",
                    recipient_id=job.posted_by_id,
                ))
            elif job.status == STATUS_COMPLETED:
                for recipient_id in (job.posted_by_id, job.applied_by_id):
                    notifications.append(Notification(
                        type="Job Completed",
                        message=f"Job completed: {job.title}",
                        recipient_id=recipient_id,
                    ))
        db.add_all(notifications)
        await db.commit()

        print(f"Users: {len(users)}, jobs: {len(jobs)}, notifications: {len(notifications)}")
        print("Seeding complete. Default credentials for all users:")
        print(f"  email: <first name>@example.com, password: {DEMO_PASSWORD}")

    await engine.dispose()


def main():
    args = parse_args()
    try:
        asyncio.run(seed(args.reset))
    except Exception as e:
        print(f"Seed failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
