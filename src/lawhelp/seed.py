"""
Default accounts for local development and demos.

Re-running is safe: accounts that already exist are skipped.
"""

import logging
from typing import Any, Dict, List

from lawhelp.core.security import get_password_hash
from lawhelp.storage import Storage

logger = logging.getLogger(__name__)

SEED_USERS: List[Dict[str, Any]] = [
    {
        "email": "admin@lawhelp.cm",
        "password": "admin123",
        "name": "System Administrator",
        "role": "admin",
        "phone": "+237123456789",
        "location": "Yaoundé, Cameroon",
    },
    {
        "email": "user@lawhelp.cm",
        "password": "user123",
        "name": "John Doe",
        "role": "user",
        "phone": "+237987654321",
        "location": "Douala, Cameroon",
    },
    {
        "email": "lawyer@lawhelp.cm",
        "password": "lawyer123",
        "name": "Dr. Marie Ngozi",
        "role": "lawyer",
        "phone": "+237555123456",
        "location": "Yaoundé, Cameroon",
        "lawyer": {
            "license_number": "BAR-CM-2018-001",
            "specialization": ["Corporate Law", "Contract Law", "Business Formation", "Mergers & Acquisitions"],
            "experience_years": 8,
            "location": "Yaoundé, Cameroon",
            "languages": ["English", "French"],
            "hourly_rate": 50000,
            "bio": "Experienced corporate lawyer specializing in business law and commercial transactions in Cameroon.",
            "is_verified": True,
            "rating": 5.0,
            "total_ratings": 12,
        },
    },
    {
        "email": "lawyer2@lawhelp.cm",
        "password": "lawyer123",
        "name": "Maître Paul Biya",
        "role": "lawyer",
        "phone": "+237666789012",
        "location": "Douala, Cameroon",
        "lawyer": {
            "license_number": "BAR-CM-2015-045",
            "specialization": ["Criminal Law", "Criminal Defense", "Family Law", "Personal Injury"],
            "experience_years": 12,
            "location": "Douala, Cameroon",
            "languages": ["French", "English"],
            "hourly_rate": 75000,
            "bio": "Senior criminal defense attorney with extensive experience in Cameroon courts.",
            "is_verified": True,
            "rating": 4.0,
            "total_ratings": 28,
        },
    },
]


def seed_database(storage: Storage) -> int:
    """Create the default accounts. Returns how many users were added."""
    created = 0
    for entry in SEED_USERS:
        if storage.get_user_by_email(entry["email"]) is not None:
            logger.info(f"Seed account {entry['email']} already exists, skipping")
            continue

        name_parts = entry["name"].split(' ')
        user = storage.create_user(
            name=entry["name"],
            first_name=name_parts[0],
            last_name=' '.join(name_parts[1:]),
            email=entry["email"],
            password_hash=get_password_hash(entry["password"]),
            phone=entry["phone"],
            location=entry["location"],
            role=entry["role"],
            is_lawyer="lawyer" in entry,
            email_verified=True,
        )
        if "lawyer" in entry:
            storage.create_lawyer(user_id=user.id, **entry["lawyer"])
        created += 1
        logger.info(f"Seed account created: {entry['email']} ({entry['role']})")

    logger.info(f"Database seeding completed: {created} account(s) added")
    return created
