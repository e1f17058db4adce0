from lawhelp.core.security import verify_password
from lawhelp.seed import SEED_USERS, seed_database
from lawhelp.storage import LawyerFilters, MemoryStorage


def test_seed_creates_default_accounts_once():
    storage = MemoryStorage()

    assert seed_database(storage) == len(SEED_USERS)
    assert seed_database(storage) == 0

    admin = storage.get_user_by_email("admin@lawhelp.cm")
    assert admin.role == "admin"
    assert admin.email_verified is True
    assert verify_password("admin123", admin.password_hash)

    lawyers = storage.get_lawyers(LawyerFilters())
    assert [lawyer.user.email for lawyer in lawyers] == ["lawyer@lawhelp.cm", "lawyer2@lawhelp.cm"]
    assert storage.get_lawyers(LawyerFilters(location="douala"))[0].license_number == "BAR-CM-2015-045"


def test_seeded_accounts_can_log_in(client, storage):
    seed_database(storage)

    response = client.post("/api/auth/login", json={"email": "user@lawhelp.cm", "password": "user123"})

    assert response.status_code == 200
    assert response.json()["data"]["user"]["role"] == "user"
