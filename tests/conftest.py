"""
Pytest configuration and shared fixtures for resultset tests.

The music fixture database:

    artist 1 Caterwauler McCrae   albums 1 (1999), 2 (2001), 3 (1997)
    artist 2 Random Boy Band      album  4 (2001)
    artist 3 We Are Goth          album  5 (1998, no rank)
    artist 4 Silent Partner       no albums
"""

import pytest

from resultset.adapters import DuckDBAdapter, SQLiteAdapter
from resultset.core import config
from resultset.domain.schema import Schema, Table


MUSIC_DDL = """
CREATE TABLE artist (
    id INTEGER PRIMARY KEY,
    name VARCHAR(100) NOT NULL
);
CREATE TABLE album (
    id INTEGER PRIMARY KEY,
    artist_id INTEGER NOT NULL REFERENCES artist(id),
    title VARCHAR(100) NOT NULL,
    year INTEGER NOT NULL,
    rank INTEGER
);
CREATE TABLE track (
    id INTEGER PRIMARY KEY,
    album_id INTEGER NOT NULL REFERENCES album(id),
    title VARCHAR(100) NOT NULL,
    seq INTEGER NOT NULL
);
"""

MUSIC_DATA = """
INSERT INTO artist (id, name) VALUES
    (1, 'Caterwauler McCrae'),
    (2, 'Random Boy Band'),
    (3, 'We Are Goth'),
    (4, 'Silent Partner');
INSERT INTO album (id, artist_id, title, year, rank) VALUES
    (1, 1, 'Spoonful of bees', 1999, 1),
    (2, 1, 'Forkful of bees', 2001, 2),
    (3, 1, 'Caterwaulin'' Blues', 1997, 3),
    (4, 2, 'Generic Manufactured Singles', 2001, 1),
    (5, 3, 'Come Be Depressed With Us', 1998, NULL);
INSERT INTO track (id, album_id, title, seq) VALUES
    (1, 1, 'The Bees Knees', 1),
    (2, 1, 'Apiary', 2),
    (3, 1, 'Beehind You', 3),
    (4, 2, 'Boring Name', 1),
    (5, 2, 'Boring Song', 2),
    (6, 3, 'Yowlin', 1),
    (7, 4, 'Sticky Honey', 1),
    (8, 5, 'Under Your Bed', 1);
"""


def build_music_schema(adapter=None, dialect=None) -> Schema:
    """Artist / Album / Track tables with their relationships."""
    artist = Table("artist", columns=["id", "name"], primary_key=["id"])
    artist.has_many("albums", "album", on={"artist_id": "id"})

    album = Table("album", columns=["id", "artist_id", "title", "year", "rank"], primary_key=["id"])
    album.belongs_to("artist", "artist", on={"id": "artist_id"})
    album.has_many("tracks", "track", on={"album_id": "id"})

    track = Table("track", columns=["id", "album_id", "title", "seq"], primary_key=["id"])
    track.belongs_to("album", "album", on={"id": "album_id"})

    schema = Schema([artist, album, track], adapter=adapter, dialect=dialect)
    schema.validate()
    return schema


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Every test starts from default settings, whatever the environment says."""
    for name in ("DEFAULT_DIALECT", "DEFAULT_PARAMSTYLE", "DEFAULT_ALIAS", "FETCH_SIZE", "TRACE", "LOG_LEVEL"):
        monkeypatch.delenv(f"RESULTSET_{name}", raising=False)
    monkeypatch.setattr(config, "settings", config.Settings(_env_file=None))
    yield


@pytest.fixture
def sqlite_adapter():
    """Connected in-memory SQLite adapter seeded with the music data."""
    adapter = SQLiteAdapter({"database": ":memory:"})
    adapter.connect()
    adapter.execute_script(MUSIC_DDL + MUSIC_DATA)
    yield adapter
    adapter.disconnect()


@pytest.fixture
def duckdb_adapter():
    """Connected in-memory DuckDB adapter seeded with the music data."""
    adapter = DuckDBAdapter({"database": ":memory:"})
    adapter.connect()
    adapter.execute_script(MUSIC_DDL + MUSIC_DATA)
    yield adapter
    adapter.disconnect()


@pytest.fixture
def music_schema():
    """Music schema without storage, for compile-only tests."""
    return build_music_schema()


@pytest.fixture
def schema(sqlite_adapter):
    """Music schema bound to the seeded SQLite adapter."""
    return build_music_schema(adapter=sqlite_adapter)


@pytest.fixture
def artists(schema):
    return schema.resultset("artist")


@pytest.fixture
def albums(schema):
    return schema.resultset("album")


@pytest.fixture
def music_db_file(tmp_path):
    """Seeded SQLite file; returns its path."""
    path = tmp_path / "music.db"
    with SQLiteAdapter({"database": str(path), "create": True}) as adapter:
        adapter.execute_script(MUSIC_DDL + MUSIC_DATA)
    return path
