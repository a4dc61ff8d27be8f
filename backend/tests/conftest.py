"""
Capstone Consult - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Dict
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from faker import Faker

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite://'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['ANTHROPIC_API_KEY'] = ''
os.environ['LOG_FILE'] = ''
os.environ['BCRYPT_ROUNDS'] = '4'

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash, create_access_token
from app.models.user import UserAccount, UserRole, Adviser, Teacher, Student
from app.models.subject import Subject
from app.modules.auth.role_resolver import Principal

fake = Faker()

# In-memory database shared by every connection of the test engine
test_engine = create_async_engine(
    'sqlite+aiosqlite://',
    echo=False,
    connect_args={'check_same_thread': False},
    poolclass=StaticPool,
)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

TEST_PASSWORD = 'testpassword123'


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def make_account(db: AsyncSession, role_model=None, **role_fields) -> UserAccount:
    """Account plus (optionally) one role record sharing its id"""
    name = fake.name()
    account = UserAccount(
        email=fake.unique.email(),
        full_name=name,
        hashed_password=get_password_hash(TEST_PASSWORD),
    )
    db.add(account)
    await db.flush()
    if role_model is not None:
        db.add(role_model(id=account.id, name=name, email=account.email, **role_fields))
    await db.commit()
    await db.refresh(account)
    return account


def principal_for(account: UserAccount, role: UserRole) -> Principal:
    return Principal(id=account.id, role=role, name=account.full_name, email=account.email)


def headers_for(principal: Principal) -> Dict[str, str]:
    token = create_access_token({
        'sub': principal.id,
        'role': principal.role.value,
        'name': principal.name,
        'email': principal.email,
    })
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def teacher(db_session: AsyncSession) -> Principal:
    account = await make_account(db_session, Teacher, department='Computing')
    return principal_for(account, UserRole.TEACHER)


@pytest.fixture
async def other_teacher(db_session: AsyncSession) -> Principal:
    account = await make_account(db_session, Teacher)
    return principal_for(account, UserRole.TEACHER)


@pytest.fixture
async def adviser(db_session: AsyncSession) -> Principal:
    account = await make_account(db_session, Adviser, department='Computing')
    return principal_for(account, UserRole.ADVISER)


@pytest.fixture
async def other_adviser(db_session: AsyncSession) -> Principal:
    account = await make_account(db_session, Adviser)
    return principal_for(account, UserRole.ADVISER)


@pytest.fixture
async def student(db_session: AsyncSession) -> Principal:
    account = await make_account(db_session, Student)
    return principal_for(account, UserRole.STUDENT)


@pytest.fixture
async def second_student(db_session: AsyncSession) -> Principal:
    account = await make_account(db_session, Student)
    return principal_for(account, UserRole.STUDENT)


@pytest.fixture
async def subject(db_session: AsyncSession, teacher: Principal) -> Subject:
    subject = Subject(
        name='Capstone Project 1',
        year_level='4th Year',
        academic_year='2025-2026',
        semester='1st Semester',
        blocks=['A', 'B'],
        teacher_id=teacher.id,
    )
    db_session.add(subject)
    await db_session.commit()
    await db_session.refresh(subject)
    return subject


@pytest.fixture
def student_headers(student: Principal) -> Dict[str, str]:
    return headers_for(student)


@pytest.fixture
def second_student_headers(second_student: Principal) -> Dict[str, str]:
    return headers_for(second_student)


@pytest.fixture
def teacher_headers(teacher: Principal) -> Dict[str, str]:
    return headers_for(teacher)


@pytest.fixture
def adviser_headers(adviser: Principal) -> Dict[str, str]:
    return headers_for(adviser)


# ==========================================
# Workflow fixtures
# ==========================================

PROJECT_TITLE = 'Smart Attendance Tracker'
PROJECT_DETAILS = 'A QR based attendance system for college consultations.'
AGENDA = 'Review chapter one and the prototype plan.'


@pytest.fixture
async def placed_student(db_session: AsyncSession, student: Principal, subject: Subject) -> Principal:
    """Student registered in block A, group 1 (still pending approval)"""
    from app.services.student_service import StudentService
    await StudentService(db_session).set_group(student, subject.id, 'A', 1)
    return student


@pytest.fixture
async def submitted_project(db_session: AsyncSession, placed_student: Principal, adviser: Principal):
    from app.services.project_service import ProjectService
    return await ProjectService(db_session).submit(placed_student, PROJECT_TITLE, PROJECT_DETAILS, adviser.id)


@pytest.fixture
async def approved_project(db_session: AsyncSession, submitted_project, teacher: Principal, adviser: Principal):
    from app.services.project_service import ProjectService
    service = ProjectService(db_session)
    await service.approve(teacher, submitted_project.id)
    return await service.approve(adviser, submitted_project.id)


@pytest.fixture
async def scheduled_consultation(db_session: AsyncSession, approved_project, adviser: Principal):
    from app.services.consultation_service import ConsultationService
    return await ConsultationService(db_session).schedule_direct(
        adviser, approved_project.id, '2026-11-02', '09:00', '10:00', 'Room 301', AGENDA
    )
