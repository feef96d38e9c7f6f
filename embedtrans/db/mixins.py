# File: embedtrans/db/mixins.py
"""
Mixins for translatable models.

TranslatableMixin exposes the translator as instance methods, so models can
be read in a locale without importing the service module:

    @translates("title", "body", default_locale="en")
    class Article(TranslatableMixin, Base):
        ...

    article.translate_field("title", ["es", "fr"])
    article.translate("es").body
"""

from typing import Any

from embedtrans.db.registry import get_metadata
from embedtrans.services import translator


class TranslatableMixin:
    """
    Mixin providing locale-aware reads for models registered with @translates.
    """

    def translate(self, locale_or_chain: Any) -> Any:
        """Return a translated copy of the record."""
        return translator.translate(self, locale_or_chain)

    def translate_field(self, attribute: Any, locale_or_chain: Any) -> Any:
        return translator.translate_field(self, attribute, locale_or_chain)

    def translate_field_strict(self, attribute: Any, locale_or_chain: Any) -> Any:
        return translator.translate_field_strict(self, attribute, locale_or_chain)

    def available_locales(self) -> list:
        """
        Locales with a non-empty entry in the record's translations container.

        The default locale comes first when declared, since its values live
        on the record itself.
        """
        metadata = get_metadata(self)
        container_value = metadata.get_container(self) or {}

        locales = [metadata.default_locale] if metadata.default_locale else []
        if hasattr(container_value, "items"):
            entries = container_value.items()
        else:
            entries = ((slot, getattr(container_value, slot, None)) for slot in metadata.locales)
        for locale, submap in entries:
            locale = getattr(locale, "value", locale)
            if submap and locale not in locales:
                locales.append(str(locale))
        return locales
