"""Shared fixtures for the gym management test suite."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from gms import create_app
from gms.config import TestConfig
from gms.extensions import db
from gms.models import Branch, Gender, Member, User, UserRole
from gms.security.passwords import hash_password
from gms.services.context import ActorContext

PASSWORD = 'Str0ng!Passw0rd'
TODAY = date(2024, 6, 15)


@pytest.fixture
def app(tmp_path):
    """Create and configure a test application instance."""
    class _Config(TestConfig):
        EMAIL_DRY_RUN_PATH = str(tmp_path / 'emails')
        EXPORT_DIR = str(tmp_path / 'exports')

    app = create_app(_Config)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def email_dir(app):
    return Path(app.config['EMAIL_DRY_RUN_PATH'])


def make_user(username, role, branch=None, email=None, active=True, mobile=None):
    user = User(
        username=username,
        password_hash=hash_password(PASSWORD),
        first_name=username.capitalize(),
        last_name='Tester',
        email=email or f'{username}@gym.test',
        mobile=mobile,
        role=role,
        branch_id=branch.id if branch else None,
        active=active,
    )
    db.session.add(user)
    db.session.commit()
    return user


def make_member(branch, mobile='01012345678', coach=None, payment=Decimal('150.00'),
                start_date=date(2024, 6, 1), end_date=date(2024, 7, 1), active=True, **extra):
    member = Member(
        random_id=extra.pop('random_id', 10000000 + int(mobile[-6:])),
        first_name=extra.pop('first_name', 'Ahmed'),
        last_name=extra.pop('last_name', 'Hassan'),
        mobile=mobile,
        gender=extra.pop('gender', Gender.MALE),
        payment=payment,
        start_date=start_date,
        period=extra.pop('period', '1 month'),
        end_date=end_date,
        coach_id=coach.id if coach else None,
        branch_id=branch.id,
        is_active=active,
        **extra,
    )
    db.session.add(member)
    db.session.commit()
    return member


@pytest.fixture
def branch(app):
    branch = Branch(name='Downtown', location='Tahrir Square', contact_number='0223456789', is_active=True)
    db.session.add(branch)
    db.session.commit()
    return branch


@pytest.fixture
def other_branch(app):
    branch = Branch(name='Maadi', location='Road 9', is_active=True)
    db.session.add(branch)
    db.session.commit()
    return branch


@pytest.fixture
def owner(app):
    return make_user('owner', UserRole.OWNER)


@pytest.fixture
def admin(branch):
    return make_user('admin', UserRole.ADMIN, branch)


@pytest.fixture
def coach(branch):
    return make_user('coach', UserRole.COACH, branch)


@pytest.fixture
def member(branch, coach):
    return make_member(branch, coach=coach)


@pytest.fixture
def owner_ctx(owner):
    return ActorContext.for_user(owner, '127.0.0.1')


@pytest.fixture
def admin_ctx(admin):
    return ActorContext.for_user(admin, '127.0.0.1')


@pytest.fixture
def coach_ctx(coach):
    return ActorContext.for_user(coach, '127.0.0.1')


def login(client, username, password=PASSWORD):
    return client.post('/auth/login', json={'username': username, 'password': password})
