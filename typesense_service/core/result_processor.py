"""
Normalisation des réponses Typesense

Transforme le JSON brut de `/documents/search` en documents typés, pages
paginées, compteurs de facettes et suggestions de catégories. Aucune méthode ne
lève sur un champ manquant ou mal formé : les valeurs invalides sont ignorées.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from pydantic import ValidationError

from typesense_service.models import CategorySuggestion, FacetCount, SearchDocument, SearchPage

logger = logging.getLogger(__name__)

MAX_PAGES = 9999


class ResultProcessor:
    """Processeur de résultats Typesense"""

    def __init__(self, max_pages: int = MAX_PAGES):
        self.max_pages = max_pages

    # === DOCUMENTS ===

    @staticmethod
    def parse_document(raw: Mapping[str, Any]) -> Optional[SearchDocument]:
        """
        Document brut → SearchDocument

        Tous les champs sont copiés tels quels, `id` est converti en chaîne et
        `objectID` lui est égal. Un champ dont la valeur ne correspond pas au
        type attendu est retiré plutôt que de faire échouer tout le document.

        Returns:
            Le document, ou None si aucun identifiant n'est exploitable
        """
        data = dict(raw or {})
        doc_id = str(data.get("id") if data.get("id") is not None else "")
        if not doc_id:
            logger.debug("Typesense hit without id ignored")
            return None
        data["id"] = doc_id

        try:
            return SearchDocument.model_validate(data)
        except ValidationError as e:
            invalid_fields = {
                error["loc"][0] for error in e.errors() if error.get("loc")
            } - {"id"}
            logger.debug(f"Dropping invalid fields from document {doc_id}: {sorted(invalid_fields)}")

        # Les champs sont déclarés par alias : on retire la clé brute correspondante
        aliases = {
            name: field.alias or name for name, field in SearchDocument.model_fields.items()
        }
        invalid_keys = {aliases.get(str(name), str(name)) for name in invalid_fields}
        cleaned = {k: v for k, v in data.items() if k not in invalid_keys}
        return SearchDocument.model_validate(cleaned)

    def parse_hits(self, data: Optional[Mapping[str, Any]]) -> List[SearchDocument]:
        """Liste des documents d'une réponse, dans l'ordre de pertinence"""
        documents = []
        for hit in (data or {}).get("hits") or []:
            document = self.parse_document((hit or {}).get("document") or {})
            if document is not None:
                documents.append(document)
        return documents

    @staticmethod
    def extract_origin_id(document_id: str, collection: str) -> str:
        """Retire le préfixe `{collection}_` ajouté à l'indexation, s'il est présent"""
        prefix = f"{collection}_"
        if document_id.startswith(prefix):
            return document_id[len(prefix):]
        return document_id

    # === PAGINATION ===

    def compute_nb_pages(self, found: Any, hits_per_page: int) -> int:
        """ceil(found / hits_per_page), borné à [1, max_pages]"""
        found_count = self.to_number(found)
        per_page = max(int(hits_per_page or 0), 1)
        nb_pages = math.ceil(found_count / per_page) if found_count > 0 else 0
        return min(max(nb_pages, 1), self.max_pages)

    def build_page(
        self,
        data: Optional[Mapping[str, Any]],
        collection: str,
        page: int,
        hits_per_page: int,
    ) -> SearchPage:
        """Réponse brute → SearchPage (ids d'origine et documents, même ordre)"""
        hits = self.parse_hits(data)
        ids = [self.extract_origin_id(doc.id, collection) for doc in hits]
        found = (data or {}).get("found") or 0

        logger.debug(f"Typesense returned {len(hits)} hits (found={found}) on {collection}")

        return SearchPage(
            ids=ids,
            hits=hits,
            page=page,
            nb_pages=self.compute_nb_pages(found, hits_per_page),
        )

    def empty_page(self, page: int) -> SearchPage:
        """Page dégradée renvoyée quand la recherche échoue"""
        return SearchPage(ids=[], hits=[], page=page, nb_pages=min(page + 1, self.max_pages))

    # === FACETTES ===

    def parse_facet_counts(self, data: Optional[Mapping[str, Any]]) -> Dict[str, List[FacetCount]]:
        """
        facet_counts → {champ: [FacetCount]}

        Seules les valeurs non vides avec un compteur > 0 sont conservées ; un
        champ sans valeur restante est omis.
        """
        result: Dict[str, List[FacetCount]] = {}

        for facet in (data or {}).get("facet_counts") or []:
            field_name = str(facet.get("field_name") or "")
            counts = []
            for entry in facet.get("counts") or []:
                value = entry.get("value")
                value = "" if value is None else str(value)
                count = int(self.to_number(entry.get("count")))
                if value and count > 0:
                    counts.append(FacetCount(value=value, count=count))
            if counts:
                result[field_name] = counts

        logger.debug(f"Typesense facets: {list(result.keys())}")
        return result

    # === SUGGESTIONS DE CATÉGORIES ===

    def build_category_suggestions(
        self,
        hits: Iterable[SearchDocument],
        language: str,
        limit: int,
    ) -> List[CategorySuggestion]:
        """
        Suggestions dédupliquées, de la plus spécifique à la plus générale

        Pour chaque document : sous-sous-catégorie, puis sous-catégorie, puis
        catégorie. Un niveau n'est émis que si ses ancêtres sont renseignés ; la
        clé de déduplication est le tuple (catégorie, sous-cat., sous-sous-cat.).
        """
        seen: Set[tuple] = set()
        results: List[CategorySuggestion] = []

        for doc in hits:
            if len(results) >= limit:
                break

            cat = doc.category or ""
            sub = doc.subcategory or ""
            subsub = doc.subsubcategory or ""
            if not cat:
                continue

            cat_display = str(doc.localized("category", language) or cat)
            sub_display = str(doc.localized("subcategory", language) or sub)
            subsub_display = str(doc.localized("subsubcategory", language) or subsub)

            candidates = []
            if sub and subsub:
                candidates.append((
                    (cat, sub, subsub),
                    f"{cat_display} > {sub_display} > {subsub_display}",
                    2,
                ))
            if sub:
                candidates.append(((cat, sub, None), f"{cat_display} > {sub_display}", 1))
            candidates.append(((cat, None, None), cat_display, 0))

            for key, display_name, level in candidates:
                if len(results) >= limit:
                    break
                if key in seen:
                    continue
                seen.add(key)
                results.append(CategorySuggestion(
                    category_key=key[0],
                    subcategory_key=key[1],
                    subsubcategory_key=key[2],
                    display_name=display_name,
                    level=level,
                    language=language,
                ))

        return results

    # === HELPERS ===

    @staticmethod
    def to_number(value: Any) -> float:
        """Conversion numérique défensive, 0 par défaut"""
        if isinstance(value, bool):
            return float(value)
        if isinstance(value, (int, float)):
            return float(value) if math.isfinite(value) else 0.0
        try:
            number = float(str(value))
        except (TypeError, ValueError):
            return 0.0
        return number if math.isfinite(number) else 0.0


__all__ = ["ResultProcessor", "MAX_PAGES"]
