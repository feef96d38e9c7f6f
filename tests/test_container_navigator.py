# tests/test_container_navigator.py
import pytest

from embedtrans.db.registry import ContainerShape
from embedtrans.services.container_navigator import (
    LookupStatus,
    field_lookup,
    lookup,
    resolve_field,
    resolve_submap,
)
from tests.support.models import Locale, LeafletFields, LeafletTranslations

SLOTS = ("es", "fr", "it")


def test_lookup_in_sparse_container():
    container = {"es": {"title": "Hola"}, "de": {}, "fr": None}

    assert lookup(container, "es").status is LookupStatus.FOUND
    assert lookup(container, "es").submap == {"title": "Hola"}
    assert lookup(container, "de").status is LookupStatus.EMPTY_AT_LOCALE
    assert lookup(container, "fr").status is LookupStatus.EMPTY_AT_LOCALE
    assert lookup(container, "it").status is LookupStatus.ABSENT
    assert lookup(None, "es").status is LookupStatus.ABSENT


def test_lookup_in_fixed_container():
    container = {"es": {"title": "Hola"}, "fr": None, "it": None}

    assert lookup(container, "es", ContainerShape.FIXED, SLOTS).found
    assert lookup(container, "fr", ContainerShape.FIXED, SLOTS).status is LookupStatus.EMPTY_AT_LOCALE
    # not one of the declared slots
    assert lookup(container, "de", ContainerShape.FIXED, SLOTS).status is LookupStatus.ABSENT


def test_lookup_in_slot_object():
    container = LeafletTranslations(es=LeafletFields(headline="Oferta"))

    result = lookup(container, "es", ContainerShape.FIXED, SLOTS)
    assert result.found
    assert field_lookup(result.submap, "headline") == "Oferta"
    assert lookup(container, "fr", ContainerShape.FIXED, SLOTS).status is LookupStatus.EMPTY_AT_LOCALE


def test_lookup_with_enum_keys():
    container = {Locale.ES: {"title": "Hola"}}
    assert lookup(container, "es").found


def test_field_lookup():
    assert field_lookup({"title": "Hola"}, "title") == "Hola"
    assert field_lookup({"title": None}, "title") is None
    assert field_lookup({}, "title") is None


def test_default_locale_short_circuits():
    container = {"en": {"title": "stored english"}, "es": {"title": "Hola"}}

    resolution = resolve_field(container, "Hello", "title", ["en", "es"], default_locale="en")
    assert resolution.value == "Hello"
    assert resolution.locale == "en"
    assert not resolution.fallback


def test_first_match_wins():
    container = {"a": {"other": "?"}, "b": {"title": "x"}, "c": {"title": "y"}}

    resolution = resolve_field(container, "own", "title", ["a", "b", "c"])
    assert resolution.value == "x"
    assert resolution.locale == "b"


@pytest.mark.parametrize(
    "container",
    [None, {}, {"de": None}, {"de": {}}, {"de": {"title": None}}, {"de": {"body": "x"}}],
)
def test_exhausted_chain_falls_back_to_own_value(container):
    resolution = resolve_field(container, "own", "title", ["de"], default_locale="en")
    assert resolution.value == "own"
    assert resolution.locale is None
    assert resolution.fallback


def test_empty_chain_falls_back():
    assert resolve_field({"es": {"title": "Hola"}}, "own", "title", []).fallback


def test_resolve_submap_returns_first_present_entry():
    container = {"es": {"title": "Hola"}, "fr": {"title": "Salut"}}

    assert resolve_submap(container, ["de", "fr", "es"]).submap == {"title": "Salut"}
    assert not resolve_submap(container, ["de", "it"]).present


def test_resolve_submap_stops_at_empty_entry():
    container = {"es": None, "fr": {"title": "Salut"}}

    result = resolve_submap(container, ["es", "fr"])
    assert result.present
    assert result.submap is None


def test_resolve_submap_has_no_default_locale_short_circuit():
    # "en" is looked up in the container like any other locale
    container = {"es": {"title": "Hola"}}
    assert resolve_submap(container, ["en", "es"]).submap == {"title": "Hola"}
