"""
test_models.py — Tests para los tipos del pipeline.

Verifica la conversión desde el registro del documento y desde los
nodos GraphQL, y la lógica de RepositoryLookup.ok.
"""

import pytest

from deckpublisher.models import (
    DeckChange,
    DeckSnapshot,
    LookupStatus,
    RemoteRepository,
    RepositoryLookup,
)


class TestDeckSnapshot:

    def test_documento_completo(self):
        deck = DeckSnapshot.from_dict({
            "id": "deck-1",
            "owner_id": "owner-1",
            "meta": {
                "title": "Demo",
                "pathname": "/octo/demo",
                "published": True,
                "published_at": "2020-06-01T10:00:00Z",
                "author": {"name": "David"},
            },
        })

        assert deck.deck_id == "deck-1"
        assert deck.owner_id == "owner-1"
        assert deck.meta.title == "Demo"
        assert deck.meta.pathname == "/octo/demo"
        assert deck.meta.published is True
        assert deck.meta.published_at == "2020-06-01T10:00:00Z"
        assert deck.meta.author_name == "David"

    def test_sin_meta(self):
        deck = DeckSnapshot.from_dict({"owner_id": "o1"})
        assert deck.meta is None

    def test_autor_no_dict(self):
        deck = DeckSnapshot.from_dict({"meta": {"author": "David", "title": None}})
        assert deck.meta.author_name == ""
        assert deck.meta.title == ""
        assert deck.meta.published_at is None

    @pytest.mark.parametrize("data", [None, "deck", 42, []])
    def test_no_dict_regresa_none(self, data):
        assert DeckSnapshot.from_dict(data) is None


class TestDeckChange:

    def test_before_ausente(self):
        change = DeckChange.from_dict({"after": {"owner_id": "o1"}})
        assert change.before is None
        assert change.after.owner_id == "o1"


class TestRemoteRepository:

    def test_from_graphql(self):
        repo = RemoteRepository.from_graphql(
            {"id": "R_1", "url": "https://github.com/octo/test", "nameWithOwner": "octo/test"}
        )
        assert repo == RemoteRepository("R_1", "https://github.com/octo/test", "octo/test")

    @pytest.mark.parametrize("data", [None, {}, {"url": "x"}])
    def test_incompleto(self, data):
        assert RemoteRepository.from_graphql(data) is None


class TestRepositoryLookup:

    REPO = RemoteRepository("R_1", "https://github.com/octo/test", "octo/test")

    @pytest.mark.parametrize("status", [LookupStatus.FOUND, LookupStatus.CREATED])
    def test_ok_con_repo(self, status):
        assert RepositoryLookup(status, self.REPO).ok

    @pytest.mark.parametrize("status", [LookupStatus.NOT_FOUND, LookupStatus.FAILED])
    def test_no_ok(self, status):
        assert not RepositoryLookup(status, self.REPO).ok

    def test_repo_sin_url(self):
        assert not RepositoryLookup(
            LookupStatus.FOUND, RemoteRepository("R_1", "", "octo/test")
        ).ok

    def test_found_sin_repo(self):
        assert not RepositoryLookup(LookupStatus.FOUND).ok
