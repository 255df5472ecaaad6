"""Data seeding CLI commands."""

import random
from datetime import date, timedelta

import click
from flask.cli import with_appcontext

from gms.models import Gender, UserRole
from gms.security.passwords import generate_secure_password
from gms.services.branches import BranchService
from gms.services.context import ActorContext
from gms.services.members import MemberService
from gms.services.training import TrainingProgressService
from gms.services.users import UserService

FIRST_NAMES = ['Ahmed', 'Mona', 'Omar', 'Sara', 'Youssef', 'Nour', 'Karim', 'Laila', 'Hassan', 'Dina']
LAST_NAMES = ['Hassan', 'Mahmoud', 'Ibrahim', 'Ali', 'Fathy', 'Samir', 'Khaled', 'Adel']
PAYMENTS = [75, 150, 300, 450, 900, 1800]
DEMO_BRANCHES = [
    ('Downtown', 'Tahrir Square, Cairo', '0223456789'),
    ('Maadi', 'Road 9, Maadi, Cairo', '0225551234'),
]


@click.group('seed')
def seed_commands():
    """Data seeding commands."""
    pass


def _mobile(rng, used):
    while True:
        number = f"01{rng.choice('0125')}{rng.randrange(10 ** 8):08d}"
        if number not in used:
            used.add(number)
            return number


@seed_commands.command('demo')
@click.option('--members-per-branch', default=10, help='Members per branch (default: 10)')
@click.option('--coaches-per-branch', default=2, help='Coaches per branch (default: 2)')
@click.option('--seed', 'seed_value', default=42, help='Random seed for repeatable data')
@with_appcontext
def seed_demo(members_per_branch, coaches_per_branch, seed_value):
    """Seed demo branches, staff, members and training sessions.

    Creates:
    - Two branches
    - One admin and the requested number of coaches per branch
    - Members with a spread of payments, start dates and coaches
    - A training session for every member with a coach

    Example:
        flask seed demo
        flask seed demo --members-per-branch 25
    """
    rng = random.Random(seed_value)
    ctx = ActorContext.system()
    branches = BranchService()
    users = UserService()
    members = MemberService(id_generator=lambda: rng.randint(10_000_000, 99_999_999))
    training = TrainingProgressService()
    used_mobiles = set()
    today = date.today()

    for name, location, contact in DEMO_BRANCHES:
        existing = branches.find_by_name(name)
        if existing:
            click.echo(f'Branch {name} already exists, skipping')
            continue

        branch = branches.create({'name': name, 'location': location, 'contact_number': contact}, ctx)
        if not branch:
            click.echo(click.style(f'Error creating branch {name}: {branch.message}', fg='red'))
            return
        branch_id = branch.value.id
        slug = name.lower()
        click.echo(f'Created branch: {name}')

        staff = [(f'{slug}_admin', UserRole.ADMIN)]
        staff += [(f'{slug}_coach{i + 1}', UserRole.COACH) for i in range(coaches_per_branch)]
        coach_ids = []
        for username, role in staff:
            password = generate_secure_password(12)
            created = users.create({
                'username': username,
                'password': password,
                'first_name': rng.choice(FIRST_NAMES),
                'last_name': rng.choice(LAST_NAMES),
                'email': f'{username}@gym.local',
                'mobile': _mobile(rng, used_mobiles),
                'role': role,
                'branch_id': branch_id,
            }, ctx)
            if not created:
                click.echo(click.style(f'  Error creating {username}: {created.message}', fg='red'))
                continue
            if role is UserRole.COACH:
                coach_ids.append(created.value.id)
            click.echo(f'  {role.display_name}: {username} / {password}')

        genders = list(Gender)
        for _ in range(members_per_branch):
            coach_id = rng.choice(coach_ids) if coach_ids and rng.random() < 0.8 else None
            member = members.create({
                'first_name': rng.choice(FIRST_NAMES),
                'last_name': rng.choice(LAST_NAMES),
                'mobile': _mobile(rng, used_mobiles),
                'gender': rng.choice(genders).value,
                'height': rng.randint(150, 195),
                'weight': rng.randint(50, 110),
                'payment': rng.choice(PAYMENTS),
                'start_date': today - timedelta(days=rng.randint(0, 240)),
                'coach_id': coach_id,
                'branch_id': branch_id,
            }, ctx)
            if not member:
                click.echo(click.style(f'  Error creating member: {member.message}', fg='red'))
                continue
            if coach_id:
                training.create({
                    'member_id': member.value.id,
                    'session_date': today - timedelta(days=rng.randint(0, 14)),
                    'notes': 'Initial assessment and programme walkthrough',
                    'rating': rng.randint(1, 5),
                }, ctx, today=today)

        click.echo(f'  Members: {members.count_by_branch(branch_id)}')

    click.echo(click.style('Demo data seeded.', fg='green'))
