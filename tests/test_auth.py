from hemsy.auth import get_or_create_user
from hemsy.models import User


def test_first_sign_in_creates_user_and_shop(db):
    user = get_or_create_user(db, "uid-1", "ana@example.com", "Ana Costa")

    assert user.shop is not None
    assert user.shop.name == "Ana Costa's Shop"
    assert user.shop.email == "ana@example.com"
    assert user.shop.timezone == "UTC"


def test_repeat_sign_in_reuses_user(db):
    first = get_or_create_user(db, "uid-1", "ana@example.com", "Ana Costa")
    second = get_or_create_user(db, "uid-1", "ana@example.com", "Ana Costa")

    assert first.id == second.id
    assert db.query(User).count() == 1


def test_new_sign_in_method_links_existing_email(db, owner):
    user = get_or_create_user(db, "google-uid", "owner@example.com")

    assert user.id == owner.id
    assert user.firebase_uid == "google-uid"
    assert user.shop.id == owner.shop.id
