"""
Merge y ranking de candidatos vectoriales y SQL.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog

from brujula.config import REGION_CITIES, REGION_STATE_NAMES, get_settings
from brujula.models import Candidate, CandidateSource, RankedResult, StructuredFilters
from brujula.search.normalizer import fold

logger = structlog.get_logger()

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def property_id_sort_key(property_id: str) -> tuple:
    """Orden por ID: numérico si el ID es un número, lexicográfico si no."""
    if property_id.isdigit():
        return (0, int(property_id), property_id)
    return (1, 0, property_id)


def _listed_key(candidate: Candidate) -> datetime:
    listed = candidate.listed_at
    if listed is None:
        return _EPOCH
    if listed.tzinfo is None:
        return listed.replace(tzinfo=timezone.utc)
    return listed


def _place_matches(wanted: str, actual: Optional[str]) -> bool:
    """Substring sin acentos ni mayúsculas, como el ilike de SQL."""
    if not actual:
        return False
    return fold(wanted).lower() in fold(actual).lower()


def _region_matches(region: str, candidate: Candidate) -> bool:
    """Estado por substring o, para CDMX, ciudad entre sus alcaldías."""
    names = REGION_STATE_NAMES.get(region, [region])
    if any(_place_matches(name, candidate.region) for name in names):
        return True
    cities = {fold(city).lower() for city in REGION_CITIES.get(region, [])}
    return bool(candidate.city) and fold(candidate.city).lower() in cities


def filter_violations(
    candidate: Candidate,
    filters: StructuredFilters,
    usd_to_mxn_rate: float,
) -> list[str]:
    """
    Campos de los filtros que el candidato no cumple.

    Un atributo faltante bajo una restricción activa cuenta como
    violación. Los precios del candidato están en MXN.
    """
    violations = []

    price_min, price_max = filters.price_bounds_mxn(usd_to_mxn_rate)
    if price_min is not None and (candidate.price is None or candidate.price < price_min):
        violations.append("price_min")
    if price_max is not None and (candidate.price is None or candidate.price > price_max):
        violations.append("price_max")

    if filters.bedrooms is not None and (
        candidate.bedrooms is None or candidate.bedrooms < filters.bedrooms
    ):
        violations.append("bedrooms")
    if filters.bathrooms is not None and (
        candidate.bathrooms is None or candidate.bathrooms < filters.bathrooms
    ):
        violations.append("bathrooms")

    if filters.property_type is not None and candidate.property_type != filters.property_type:
        violations.append("property_type")
    if filters.city and not _place_matches(filters.city, candidate.city):
        violations.append("city")
    if filters.region and not _region_matches(filters.region, candidate):
        violations.append("region")

    if not filters.features <= candidate.features:
        violations.append("features")
    if filters.excluded_features & candidate.features:
        violations.append("excluded_features")

    return violations


class ResultRanker:
    """
    Combina los candidatos de ambos caminos en una lista final.

    Pasos: dedup por ID (gana la entrada vectorial), score compuesto,
    post-filtro contra los filtros estructurados, orden y truncado.
    """

    def __init__(
        self,
        sql_baseline_score: Optional[float] = None,
        usd_to_mxn_rate: Optional[float] = None,
    ):
        settings = get_settings()
        self.sql_baseline_score = (
            sql_baseline_score if sql_baseline_score is not None else settings.sql_baseline_score
        )
        self.usd_to_mxn_rate = usd_to_mxn_rate or settings.usd_to_mxn_rate

    def score(self, candidate: Candidate) -> float:
        if candidate.source == CandidateSource.VECTOR:
            return max(0.0, min(1.0, candidate.raw_score))
        return self.sql_baseline_score

    def rank(
        self,
        vector_candidates: Iterable[Candidate],
        sql_candidates: Iterable[Candidate],
        filters: StructuredFilters,
        limit: int,
    ) -> list[RankedResult]:
        """
        Devuelve a lo sumo `limit` resultados con rank 1-based.

        Orden: score desc, publicación más reciente primero, ID asc.
        """
        merged: dict[str, Candidate] = {}
        for candidate in vector_candidates:
            merged.setdefault(candidate.property_id, candidate)
        for candidate in sql_candidates:
            merged.setdefault(candidate.property_id, candidate)

        scored = []
        dropped = 0
        for candidate in merged.values():
            violations = filter_violations(candidate, filters, self.usd_to_mxn_rate)
            if violations:
                dropped += 1
                logger.debug(
                    "Candidato descartado por post-filtro",
                    property_id=candidate.property_id,
                    source=candidate.source.value,
                    violations=violations,
                )
                continue
            scored.append((self.score(candidate), candidate))

        scored.sort(key=lambda item: property_id_sort_key(item[1].property_id))
        scored.sort(key=lambda item: _listed_key(item[1]), reverse=True)
        scored.sort(key=lambda item: item[0], reverse=True)

        results = [
            RankedResult(
                **candidate.model_dump(),
                relevance_score=score,
                rank=position,
            )
            for position, (score, candidate) in enumerate(scored[: max(limit, 0)], start=1)
        ]

        if dropped:
            logger.info("Post-filtro aplicado", dropped=dropped, kept=len(scored))
        return results
