"""Shared fixtures: temporary SQLite databases and seed files."""

import json
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from luxembourg_law.models.schemas import SeedDocument
from luxembourg_law.pipeline.build_db import build_database
from luxembourg_law.repository.db import create_db_engine


@pytest.fixture
def seed_dir(tmp_path):
    path = tmp_path / "seed"
    path.mkdir()
    return path


@pytest.fixture
def write_seed(seed_dir):
    """Write a seed JSON file from keyword arguments; returns its path."""

    def _write(**fields) -> Path:
        seed = SeedDocument.model_validate(fields)
        path = seed_dir / f"{seed.id}.json"
        path.write_text(
            json.dumps(seed.model_dump(exclude_none=True), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        return path

    return _write


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def build(engine, seed_dir):
    """Build the database from whatever seeds were written so far."""

    def _build():
        return build_database(engine, seed_dir)

    return _build


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def sample_corpus(write_seed, build):
    """Two statutes with EU references, one repealed regulation."""
    write_seed(
        id="loi-2002-08-02-n2",
        title="Loi du 2 août 2002 relative à la protection des personnes à l'égard du traitement des données à caractère personnel",
        issued_date="2002-08-02",
        url="http://data.legilux.public.lu/eli/etat/leg/loi/2002/08/02/n2/jo",
        provisions=[
            {
                "provision_ref": "art1",
                "section": "1",
                "title": "Article 1er",
                "content": "La présente loi protège les libertés et les droits fondamentaux des personnes physiques.",
            },
            {
                "provision_ref": "art3",
                "section": "1",
                "title": "Article 3",
                "content": "Le traitement des données à caractère personnel est licite dans les cas suivants.",
            },
        ],
    )
    write_seed(
        id="loi-2019-05-28-a372",
        title="Loi du 28 mai 2019 portant transposition de la directive 2016/1148/UE concernant la sécurité des réseaux et des systèmes d'information",
        issued_date="2019-05-28",
        url="http://data.legilux.public.lu/eli/etat/leg/loi/2019/05/28/a372/jo",
        provisions=[
            {
                "provision_ref": "art1",
                "section": "1",
                "title": "Article 1er",
                "content": "La présente loi s'applique aux opérateurs de services essentiels.",
            },
        ],
    )
    write_seed(
        id="rgd-1995-03-01-a1",
        title="Règlement grand-ducal du 1er mars 1995 portant exécution du règlement (CEE) n° 2913/92",
        status="repealed",
        issued_date="1995-03-01",
        provisions=[
            {
                "provision_ref": "art1",
                "section": "1",
                "title": "Article 1er",
                "content": "Les dispositions douanières sont applicables.",
            },
        ],
    )
    return build()
