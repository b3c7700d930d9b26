"""Pytest configuration and fixtures."""
import os
import tempfile

# Set test environment BEFORE importing corpsec modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="corpsec-test-")
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["OPENAI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["GOOGLE_AI_API_KEY"] = ""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from corpsec.database import Base
import corpsec.models  # noqa: F401


PASSWORD = "password123"


@pytest.fixture(scope="function")
def db_session():
    """Create a test database session on a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()
    
    yield session
    
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def storage(tmp_path):
    """File storage rooted in a temporary directory."""
    from corpsec.services.storage import LocalStorage
    
    return LocalStorage(tmp_path / "files")


@pytest.fixture
def make_tenant(db_session):
    """Factory for tenants; ACTIVE by default."""
    from corpsec.models.tenant import Tenant, TenantStatus
    
    def _make(name="Acme Corporate Services", status=TenantStatus.ACTIVE, **kwargs):
        tenant = Tenant(
            name=name,
            slug=name.lower().replace(" ", "-"),
            status=status.value,
            **kwargs,
        )
        db_session.add(tenant)
        db_session.commit()
        db_session.refresh(tenant)
        return tenant
    return _make


@pytest.fixture
def tenant(make_tenant):
    return make_tenant()


@pytest.fixture
def other_tenant(make_tenant):
    return make_tenant(name="Other Secretarial")


@pytest.fixture
def make_user(db_session):
    """Factory for users with a known password."""
    from corpsec.models.user import User
    from corpsec.routers.auth import get_password_hash
    
    password_hash = get_password_hash(PASSWORD)
    
    def _make(role, tenant=None, email=None, **kwargs):
        user = User(
            tenant_id=tenant.id if tenant else None,
            email=email or f"{role.value.lower()}@example.com",
            password_hash=password_hash,
            first_name="Test",
            last_name=role.value.title().replace("_", " "),
            role=role.value,
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def super_admin(make_user):
    from corpsec.models.user import UserRole
    return make_user(UserRole.SUPER_ADMIN)


@pytest.fixture
def tenant_admin(make_user, tenant):
    from corpsec.models.user import UserRole
    return make_user(UserRole.TENANT_ADMIN, tenant)


@pytest.fixture
def company_admin(make_user, tenant):
    from corpsec.models.user import UserRole
    return make_user(UserRole.COMPANY_ADMIN, tenant)


@pytest.fixture
def company_user(make_user, tenant):
    from corpsec.models.user import UserRole
    return make_user(UserRole.COMPANY_USER, tenant)


@pytest.fixture
def make_company(db_session):
    """Factory for companies."""
    from corpsec.models.company import Company
    
    def _make(tenant, uen="201912345K", name="Sunrise Trading Pte. Ltd.", **kwargs):
        company = Company(tenant_id=tenant.id, uen=uen, name=name, **kwargs)
        db_session.add(company)
        db_session.commit()
        db_session.refresh(company)
        return company
    return _make


@pytest.fixture
def company(make_company, tenant):
    return make_company(tenant, financial_year_end_month=12)


@pytest.fixture
def assign(db_session):
    """Assign a user to a company."""
    from corpsec.models.user import UserCompanyAssignment
    
    def _assign(user, company):
        db_session.add(UserCompanyAssignment(user_id=user.id, company_id=company.id))
        db_session.commit()
    return _assign


@pytest.fixture
def auth_headers():
    """Bearer header for a user."""
    from corpsec.routers.auth import create_access_token
    
    def _headers(user):
        token = create_access_token({
            "sub": str(user.id),
            "tenant_id": str(user.tenant_id) if user.tenant_id else None,
            "role": user.role,
        })
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def queued_jobs(monkeypatch):
    """Captures Celery .delay calls instead of sending them to a broker."""
    from corpsec.workers.tasks import extract_processing_document
    
    calls = []
    monkeypatch.setattr(extract_processing_document, "delay", lambda *args: calls.append(args))
    return calls


@pytest.fixture
def client(db_session, storage, queued_jobs):
    """API client bound to the test session and storage."""
    from fastapi.testclient import TestClient
    
    from corpsec.database import get_db
    from corpsec.main import app
    from corpsec.services.storage import get_storage
    
    def override_get_db():
        yield db_session
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    
    yield TestClient(app)
    
    app.dependency_overrides.clear()


@pytest.fixture
def pdf_bytes():
    """A two-page PDF built with PyMuPDF."""
    import fitz
    
    doc = fitz.open()
    for text in ("BUSINESS PROFILE", "OFFICERS"):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def png_bytes():
    """A small PNG built with Pillow."""
    from io import BytesIO
    from PIL import Image
    
    buffer = BytesIO()
    Image.new("RGB", (120, 80), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_document(db_session):
    """Factory for stored document rows (the file itself is not written)."""
    from corpsec.models.document import Document
    
    def _make(tenant, company=None, file_name="bizfile.pdf", mime_type="application/pdf", **kwargs):
        document = Document(
            tenant_id=tenant.id,
            company_id=company.id if company else None,
            file_name=file_name,
            original_file_name=file_name,
            storage_key=f"pending/{tenant.id}/{file_name}",
            file_size=1024,
            mime_type=mime_type,
            **kwargs,
        )
        db_session.add(document)
        db_session.commit()
        db_session.refresh(document)
        return document
    return _make


@pytest.fixture
def bizfile_payload():
    """camelCase BizFile extraction as returned by the vision model."""
    return {
        "entityDetails": {
            "uen": "201912345K",
            "name": "SUNRISE TRADING PTE. LTD.",
            "entityType": "Private Company Limited by Shares",
            "status": "Live Company",
            "incorporationDate": "2019-04-01",
        },
        "ssicActivities": {
            "primary": {"code": "46900", "description": "WHOLESALE TRADE"},
        },
        "registeredAddress": {
            "block": "10",
            "streetName": "ANSON ROAD",
            "level": "10",
            "unit": "01",
            "buildingName": "INTERNATIONAL PLAZA",
            "postalCode": "079903",
        },
        "shareCapital": [
            {
                "shareClass": "ORDINARY",
                "currency": "SGD",
                "numberOfShares": 100000,
                "totalValue": "100,000.00",
                "isPaidUp": True,
            },
        ],
        "shareholders": [
            {
                "name": "TAN AH KOW",
                "type": "INDIVIDUAL",
                "identificationType": "NRIC",
                "identificationNumber": "S1234567A",
                "nationality": "SINGAPORE CITIZEN",
                "numberOfShares": 60000,
            },
            {
                "name": "LIM HOLDINGS PTE. LTD.",
                "type": "CORPORATE",
                "identificationNumber": "201500001A",
                "numberOfShares": 40000,
            },
        ],
        "officers": [
            {
                "name": "TAN AH KOW",
                "role": "Director",
                "identificationType": "NRIC",
                "identificationNumber": "S1234567A",
                "nationality": "SINGAPORE CITIZEN",
                "appointmentDate": "2019-04-01",
            },
            {
                "name": "LEE MEI LING",
                "role": "Secretary",
                "identificationType": "NRIC",
                "identificationNumber": "S7654321B",
                "appointmentDate": "2019-04-01",
            },
        ],
        "financialYear": {"endDay": 31, "endMonth": 12},
        "compliance": {"lastAgmDate": "2025-06-30", "lastArFiledDate": "2025-07-15"},
        "documentMetadata": {"receiptNo": "ACRA250101", "receiptDate": "2026-01-05"},
    }
