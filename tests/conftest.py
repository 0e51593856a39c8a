"""
Pastoral Familiar - Avaliações - Test Configuration and Fixtures
"""
import os
from datetime import date, timedelta

# Set testing environment (antes de importar a aplicação)
os.environ['ENVIRONMENT'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite:///./test_avaliacoes.db'
os.environ['JWT_SECRET'] = 'test-jwt-secret-key-for-testing-only-000'
os.environ['REFRESH_TOKEN_SECRET'] = 'test-refresh-secret-for-testing-only-00'
os.environ['COOKIE_SECRET'] = 'test-cookie-secret-for-testing-only-000'
os.environ['SENDGRID_API_KEY'] = ''
os.environ['CSRF_ENABLED'] = 'true'

import pytest
from faker import Faker
from fastapi.testclient import TestClient

from main import app
from avaliacoes.database import Base, SessionLocal, engine
from avaliacoes.models.encontro import Encontro
from avaliacoes.models.pastoral import DEFAULT_SUBDOMAIN, Pastoral
from avaliacoes.models.usuario import ROLE_PASTORAL_ADMIN, ROLE_SUPER_ADMIN, User
from avaliacoes.rate_limiter import limiter
from avaliacoes.security import create_access_token, get_password_hash

fake = Faker('pt_BR')

SUPER_ADMIN_PASSWORD = 'Admin@12345'
PASTORAL_ADMIN_PASSWORD = 'Pastoral@123'

OUTRA_HOST = 'saobenedito.avaliacoes.com.br'


@pytest.fixture(autouse=True)
def reset_limiter():
    """Os contadores do slowapi ficam em memória entre os testes"""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(scope='function')
def db_session():
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session) -> TestClient:
    """Sem `with`: o lifespan (seed e limpeza periódica) não roda nos testes"""
    return TestClient(app)


@pytest.fixture
def default_pastoral(db_session) -> Pastoral:
    pastoral = Pastoral(name='Pastoral Familiar', subdomain=DEFAULT_SUBDOMAIN, contato_email=None)
    db_session.add(pastoral)
    db_session.commit()
    db_session.refresh(pastoral)
    return pastoral


@pytest.fixture
def outra_pastoral(db_session) -> Pastoral:
    pastoral = Pastoral(name='Paróquia São Benedito', subdomain='saobenedito', cidade='Campinas', estado='SP')
    db_session.add(pastoral)
    db_session.commit()
    db_session.refresh(pastoral)
    return pastoral


@pytest.fixture
def super_admin(db_session) -> User:
    user = User(
        email=fake.unique.email(),
        password_hash=get_password_hash(SUPER_ADMIN_PASSWORD),
        name=fake.name(),
        role=ROLE_SUPER_ADMIN,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def pastoral_admin(db_session, default_pastoral) -> User:
    user = User(
        email=fake.unique.email(),
        password_hash=get_password_hash(PASTORAL_ADMIN_PASSWORD),
        name=fake.name(),
        role=ROLE_PASTORAL_ADMIN,
        pastoral_id=default_pastoral.id,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def outro_admin(db_session, outra_pastoral) -> User:
    """Admin de outra pastoral"""
    user = User(
        email=fake.unique.email(),
        password_hash=get_password_hash(PASTORAL_ADMIN_PASSWORD),
        name=fake.name(),
        role=ROLE_PASTORAL_ADMIN,
        pastoral_id=outra_pastoral.id,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def bearer(user: User) -> dict:
    return {'Authorization': f'Bearer {create_access_token(user)}'}


@pytest.fixture
def super_admin_headers(super_admin) -> dict:
    """Generate authentication headers for super admin"""
    return bearer(super_admin)


@pytest.fixture
def admin_headers(pastoral_admin) -> dict:
    """Generate authentication headers for the default pastoral admin"""
    return bearer(pastoral_admin)


@pytest.fixture
def encontro(db_session, default_pastoral) -> Encontro:
    inicio = date.today() + timedelta(days=10)
    encontro = Encontro(
        pastoral_id=default_pastoral.id,
        nome='Encontro de Casais 2026',
        data_inicio=inicio,
        data_fim=inicio + timedelta(days=2),
        local='Casa de Retiro',
        codigo_acesso='ENC2026',
        status='ativo',
    )
    db_session.add(encontro)
    db_session.commit()
    db_session.refresh(encontro)
    return encontro


def evaluation_payload(nota: int = 5, interest: str = 'sim', contact: str = None, **extra) -> dict:
    """Formulário completo no formato camelCase do frontend"""
    payload = {
        'basicInfo': {'coupleName': fake.name() + ' e ' + fake.first_name(), 'encounterDate': '2026-03-14'},
        'preEncontro': {'communicationClarity': nota, 'registrationEase': nota, 'comments': 'Tudo claro'},
        'duranteEncontro': {
            'palestras': {'relevance': nota, 'clarity': nota, 'duration': nota, 'comments': ''},
            'ambientes': {'comfort': nota, 'cleanliness': nota, 'decoration': nota, 'comments': ''},
            'refeicoes': {'quality': nota, 'organization': nota, 'comments': ''},
            'musicas': {'suitability': nota, 'quality': nota, 'comments': ''},
            'equipe': {'availability': nota, 'organization': nota, 'comments': ''},
        },
        'posEncontro': {
            'geral': {'expectations': nota, 'overallRating': nota, 'recommendation': nota, 'comments': 'Ótimo'},
            'pastoral': {'interest': interest, 'contactInfo': contact},
            'finalMessage': 'Obrigado a todos!',
        },
    }
    payload.update(extra)
    return payload


@pytest.fixture
def make_evaluation():
    return evaluation_payload
