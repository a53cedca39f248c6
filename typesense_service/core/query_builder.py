import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# === CONSTANTES DE REQUÊTE ===

MATCH_ALL = "*"

# Champs interrogés par défaut : nom, marque, vendeur et catégories en 3 langues
CATALOG_LANGUAGES = ("en", "tr", "ru")
DEFAULT_QUERY_BY = ",".join(
    ["productName", "brandModel", "sellerName"]
    + [
        f"{level}_{lang}"
        for level in ("category", "subcategory", "subsubcategory")
        for lang in CATALOG_LANGUAGES
    ]
)

# Projection utilisée par les requêtes paginées à facettes (cartes produit)
DEFAULT_INCLUDE_FIELDS = ",".join([
    "id", "productName", "price", "originalPrice", "discountPercentage", "brandModel",
    "category", "subcategory", "subsubcategory", "gender", "availableColors",
    "colorImagesJson", "colorQuantitiesJson",
    "shopId", "ownerId", "userId", "promotionScore", "createdAt", "imageUrls",
    "sellerName", "condition", "currency", "quantity", "averageRating", "reviewCount",
    "isBoosted", "isFeatured", "purchaseCount", "bestSellerRank", "deliveryOption", "paused",
    "bundleIds", "videoUrl", "campaignName", "discountThreshold", "bulkDiscountPercentage",
])

# Champs de spécification agrégés pour la barre latérale de filtres
SPEC_FACET_FIELDS = ",".join([
    "productType", "consoleBrand", "clothingFit", "clothingTypes", "clothingSizes",
    "jewelryType", "jewelryMaterials", "pantSizes", "pantFabricTypes", "footwearSizes",
])

SORT_EXPRESSIONS: Dict[str, str] = {
    "date": "createdAt:desc",
    "alphabetical": "productName:asc",
    "price_asc": "price:asc",
    "price_desc": "price:desc",
    "timestamp": "timestampForSorting:desc",
}

# Ordre par défaut : les produits promus/boostés d'abord, puis les plus récents
DEFAULT_SORT_EXPRESSION = "promotionScore:desc,createdAt:desc"

_NUMERIC_FILTER_RE = re.compile(r"(\w+)\s*(>=|<=|>|<|=)\s*(\S+)")


class QueryBuilder:
    """
    Constructeur de requêtes Typesense

    Traduit une recherche structurée (texte libre, option de tri, filtres
    d'égalité, groupes de facettes, filtres numériques, projection) en
    paramètres de query-string pour `/collections/{c}/documents/search`.

    Règles de combinaison:
    - dans un groupe de facettes, les valeurs sont combinées en OU
    - entre les groupes et avec les autres filtres, tout est combiné en ET
    - la pagination publique commence à 0, celle de Typesense à 1
    """

    @staticmethod
    def normalize_query(text: Optional[str]) -> str:
        """Texte vide ou blanc → joker de correspondance totale"""
        stripped = (text or "").strip()
        return stripped or MATCH_ALL

    @staticmethod
    def sort_by(sort_option: Optional[str]) -> str:
        """Option de tri → expression sort_by (tri promu par défaut)"""
        return SORT_EXPRESSIONS.get(sort_option or "", DEFAULT_SORT_EXPRESSION)

    @staticmethod
    def equality_clause(raw_filter: str) -> Optional[str]:
        """
        `field:"value"` → `field:=value`

        Les guillemets sont retirés ; une entrée sans ':' est ignorée (None).
        """
        field, sep, value = raw_filter.partition(":")
        if not sep:
            return None
        field = field.strip()
        value = value.strip().replace('"', "")
        return f"{field}:={value}"

    def build_filter_by(self, filters: Optional[Iterable[str]]) -> Optional[str]:
        """Filtres d'égalité simples combinés en ET"""
        parts = [c for c in (self.equality_clause(f) for f in filters or []) if c]
        return " && ".join(parts) or None

    @staticmethod
    def or_clause(clauses: Sequence[str]) -> Optional[str]:
        """Une clause seule reste nue, plusieurs sont entourées de parenthèses"""
        if not clauses:
            return None
        if len(clauses) == 1:
            return clauses[0]
        return f"({' || '.join(clauses)})"

    def field_in(self, field: str, values: Optional[Iterable[str]]) -> Optional[str]:
        """Valeurs d'un même champ combinées en OU : `(f:=a || f:=b)`"""
        return self.or_clause([f"{field}:={value}" for value in values or []])

    def build_facet_filters(self, facet_filters: Optional[Iterable[Sequence[str]]]) -> List[str]:
        """Un groupe de facettes → une clause OU ; les groupes vides sont ignorés"""
        clauses = []
        for group in facet_filters or []:
            if not group:
                continue
            or_parts = [c for c in (self.equality_clause(f) for f in group) if c]
            clause = self.or_clause(or_parts)
            if clause:
                clauses.append(clause)
        return clauses

    @staticmethod
    def convert_numeric_filters(numeric_filters: Optional[Iterable[str]]) -> List[str]:
        """`price >= 10` → `price:>=10`"""
        converted = []
        for numeric_filter in numeric_filters or []:
            clause = _NUMERIC_FILTER_RE.sub(
                lambda m: f"{m.group(1)}:{m.group(2)}{m.group(3)}", numeric_filter
            ).strip()
            if clause:
                converted.append(clause)
        return converted

    def combine_filters(
        self,
        additional_filter_by: Optional[str] = None,
        filters: Optional[Iterable[str]] = None,
        facet_filters: Optional[Iterable[Sequence[str]]] = None,
        numeric_filters: Optional[Iterable[str]] = None,
    ) -> Optional[str]:
        """Filtre explicite, filtres d'égalité, facettes et filtres numériques, tous en ET"""
        parts: List[str] = []

        if additional_filter_by and additional_filter_by.strip():
            parts.append(additional_filter_by.strip())

        equality = self.build_filter_by(filters)
        if equality:
            parts.append(equality)

        parts.extend(self.build_facet_filters(facet_filters))
        parts.extend(self.convert_numeric_filters(numeric_filters))

        return " && ".join(parts) or None

    def build_search_params(
        self,
        query: Optional[str],
        *,
        query_by: Optional[str] = None,
        sort_by: Optional[str] = None,
        page: Optional[int] = None,
        hits_per_page: Optional[int] = None,
        filter_by: Optional[str] = None,
        include_fields: Optional[str] = None,
        facet_by: Optional[str] = None,
        max_facet_values: Optional[int] = None,
    ) -> Dict[str, str]:
        """
        Paramètres de query-string de la recherche

        Args:
            query: Texte libre (vide → "*")
            query_by: Champs interrogés (DEFAULT_QUERY_BY si absent)
            sort_by: Expression de tri déjà résolue
            page: Page publique, base 0 (envoyée +1)
            hits_per_page: Taille de page
            filter_by: Expression de filtre complète
            include_fields: Projection explicite
            facet_by: Champs à agréger
            max_facet_values: Nombre maximal de valeurs par facette

        Returns:
            Dict des paramètres, uniquement ceux renseignés
        """
        params: Dict[str, str] = {
            "q": self.normalize_query(query),
            "query_by": query_by or DEFAULT_QUERY_BY,
        }
        if sort_by:
            params["sort_by"] = sort_by
        if hits_per_page is not None:
            params["per_page"] = str(hits_per_page)
        if page is not None:
            params["page"] = str(page + 1)
        if filter_by:
            params["filter_by"] = filter_by
        if include_fields:
            params["include_fields"] = include_fields
        if facet_by:
            params["facet_by"] = facet_by
        if max_facet_values is not None:
            params["max_facet_values"] = str(max_facet_values)
        return params


__all__ = [
    "QueryBuilder",
    "MATCH_ALL",
    "DEFAULT_QUERY_BY",
    "DEFAULT_INCLUDE_FIELDS",
    "DEFAULT_SORT_EXPRESSION",
    "SPEC_FACET_FIELDS",
    "SORT_EXPRESSIONS",
]
