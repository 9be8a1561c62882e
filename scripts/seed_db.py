#!/usr/bin/env python3
"""Seed the database with demo users, salons and services.

Both demo accounts use the password ``password123``. Ratings start at zero and
only move when reviews are posted.
"""
import sys
from pathlib import Path

# Add the parent directory to the path so we can import the app
sys.path.insert(0, str(Path(__file__).parent.parent))

from salonbook import create_app
from salonbook.auth import hash_password
from salonbook.extensions import db
from salonbook.models import User
from salonbook.storage import atomic, storage

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    {
        "name": "Test User",
        "username": "testuser",
        "email": "test@example.com",
        "phone": "1234567890",
        "is_salon_owner": False,
    },
    {
        "name": "Salon Owner",
        "username": "salonowner",
        "email": "owner@example.com",
        "phone": "0987654321",
        "is_salon_owner": True,
    },
]

DEMO_SALONS = [
    {
        "name": "Luxury Spa & Salon",
        "description": "A luxury spa and salon offering premium services",
        "location": "Marrakech",
        "address": "123 Main Street",
        "phone": "555-123-4567",
        "email": "contact@luxuryspa.com",
        "categories": ["Spa", "Hair", "Nails", "Facial"],
        "price_range": {"min": 200, "max": 1000},
        "featured": True,
        "services": [
            {
                "name": "Luxury Hammam Ritual",
                "description": "Traditional hammam experience with full body exfoliation and mask",
                "price": 600,
                "discounted_price": 500,
                "duration_minutes": 90,
                "category": "Spa",
                "is_popular": True,
            },
            {
                "name": "Signature Facial",
                "description": "Deep cleansing facial with premium products and massage",
                "price": 450,
                "duration_minutes": 60,
                "category": "Facial",
                "is_popular": True,
            },
        ],
    },
    {
        "name": "Modern Beauty Center",
        "description": "Contemporary beauty center with the latest trends and techniques",
        "location": "Casablanca",
        "address": "456 Avenue Mohammed V",
        "phone": "555-987-6543",
        "email": "info@modernbeauty.com",
        "categories": ["Hair", "Makeup", "Nails"],
        "price_range": {"min": 150, "max": 800},
        "featured": False,
        "services": [
            {
                "name": "Hair Cut & Style",
                "description": "Professional haircut and styling by expert stylists",
                "price": 350,
                "duration_minutes": 45,
                "category": "Hair",
                "is_popular": True,
            },
            {
                "name": "Gel Manicure",
                "description": "Long-lasting gel manicure with nail art options",
                "price": 200,
                "discounted_price": 180,
                "duration_minutes": 60,
                "category": "Nails",
            },
        ],
    },
]


def seed_database() -> None:
    app = create_app()

    with app.app_context():
        db.create_all()

        if User.query.first() is not None:
            print("Database already seeded, skipping...")
            return

        print("Seeding database...")
        password_hash = hash_password(DEMO_PASSWORD)

        with atomic():
            users = [storage.create_user(data, password_hash) for data in DEMO_USERS]
            owner = next(user for user in users if user.is_salon_owner)

            for salon_data in DEMO_SALONS:
                salon_fields = {k: v for k, v in salon_data.items() if k != "services"}
                salon = storage.create_salon({**salon_fields, "owner_id": owner.user_id})
                for service_data in salon_data["services"]:
                    storage.create_service({**service_data, "salon_id": salon.salon_id})
                print(f"Created salon '{salon.name}' with {len(salon_data['services'])} services")

        print(f"Database seeded successfully! Log in as testuser or salonowner / {DEMO_PASSWORD}")


if __name__ == "__main__":
    seed_database()
