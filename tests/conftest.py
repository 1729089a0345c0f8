"""Shared fixtures: test settings, an in-memory database and an ASGI client."""

import io
import json
import os
from unittest.mock import MagicMock

os.environ["CASALABIA_ENVIRONMENT"] = "test"
os.environ["CASALABIA_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CASALABIA_RATE_LIMIT_ENABLED"] = "false"
os.environ["CASALABIA_SCHEDULER_ENABLED"] = "false"
os.environ["CASALABIA_COOKIE_SECURE"] = "false"
os.environ["CASALABIA_OPENAI_API_KEY"] = "sk-test-suite"

import httpx
import pytest
from PIL import Image
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.db.models  # noqa: F401 - registers tables on Base.metadata
from app.db.session import Base, get_session
from app.main import create_app
from routers.dependencies import get_object_storage, get_session_factory
from services.ai_client import ChatCompletion
from services.draft_models import ListingFacts
from services.storage import ObjectStorage


@pytest.fixture
def milan_listing():
    return ListingFacts(
        id="lst-milano-1",
        type="rent",
        property_type="apartment",
        title="Bilocale a Milano",
        price=1200,
        user_fields={"city": "Milano", "squareMeters": 60},
    )


@pytest.fixture
def full_listing():
    return ListingFacts(
        id="lst-torino-7",
        type="sale",
        property_type="apartment",
        title="Quadrilocale in Crocetta",
        price=320000.0,
        user_fields={
            "city": "Torino",
            "district": "Crocetta",
            "squareMeters": 95,
            "rooms": 4,
            "bathrooms": 2,
            "floor": 2,
            "elevator": True,
            "balcony": True,
            "heatingType": "autonomo",
            "energyClass": "C",
            "metroDistance": 5,
            "condoFees": 150,
        },
    )


def draft_payload(description=None, **overrides):
    paragraphs = [
        "In affitto a Milano un bilocale di 60 m² arredato, al prezzo di 1200 euro al mese.",
        "La zona giorno ha un angolo cottura e la camera da letto affaccia sul cortile interno.",
        "L'edificio ha una portineria e un cortile condominiale curato con posti bici.",
        "Milano offre collegamenti con tram e metropolitana a breve distanza dall'immobile.",
        "Il canone è di 1200 euro al mese; tutti i dettagli vanno verificati prima della firma.",
    ]
    payload = {
        "title": "Bilocale arredato di 60 m² a Milano",
        "summary": " ".join(["Bilocale luminoso in affitto a Milano con 60 m² ben distribuiti."] * 10),
        "description": description if description is not None else "\n\n".join(paragraphs),
        "highlights": [
            "Bilocale arredato di 60 m²",
            "Cortile interno tranquillo e curato",
            "Tram e metropolitana vicini",
        ],
        "disclaimer": "Le informazioni sono indicative e non costituiscono vincolo contrattuale.",
        "seo": {
            "keywords": ["bilocale Milano", "affitto Milano", "60 m²"],
            "metaDescription": (
                "Bilocale arredato di 60 m² in affitto a Milano, con cortile interno, "
                "vicino a tram e metropolitana. Canone 1200 euro al mese, visite su appuntamento."
            ),
        },
    }
    payload.update(overrides)
    return payload


def completion(content, model="gpt-4o-mini", request_id="ai_1_abc"):
    if not isinstance(content, str):
        content = json.dumps(content, ensure_ascii=False)
    return ChatCompletion(content=content, model=model, request_id=request_id)


def jpeg_bytes(width=1200, height=800, color=(180, 120, 60), exif=None):
    buffer = io.BytesIO()
    image = Image.new("RGB", (width, height), color)
    if exif is not None:
        image.save(buffer, format="JPEG", quality=90, exif=exif)
    else:
        image.save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.generate_presigned_url.side_effect = lambda operation, Params, ExpiresIn: (
        f"https://casalabia-test.s3.local/{Params['Key']}?X-Amz-Expires={ExpiresIn}"
    )
    client.head_object.return_value = {"ContentLength": 1}
    client.get_object.side_effect = lambda Bucket, Key: {"Body": io.BytesIO(jpeg_bytes())}
    return client


@pytest.fixture
def storage(s3_client):
    return ObjectStorage(s3_client, "casalabia-test", presign_expires_seconds=300)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory, storage):
    application = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_session] = override_get_session
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    application.dependency_overrides[get_object_storage] = lambda: storage
    transport = httpx.ASGITransport(app=application)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture
async def auth_client(client):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "agent@example.com", "password": "casa12345"},
    )
    assert response.status_code == 201
    return client
