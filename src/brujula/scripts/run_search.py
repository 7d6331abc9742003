"""
Script para correr una búsqueda desde la terminal.

Muestra los filtros interpretados, el camino usado (vector, SQL,
híbrido o browse) y los resultados rankeados.

Uso:
    python -m brujula.scripts.run_search "casa con alberca en cancún bajo 5 millones"
    python -m brujula.scripts.run_search "modern apartment downtown" --limit 5 --json
    python -m brujula.scripts.run_search "depa en cdmx" --no-analysis
    python -m brujula.scripts.run_search "casa en mérida" --suggest
"""

import argparse
import asyncio
import json
import logging
import sys
import warnings

import structlog

# Suprimir warnings de cleanup de asyncio en Windows
warnings.filterwarnings("ignore", category=ResourceWarning, message=".*unclosed transport.*")

from brujula.config import get_settings
from brujula.exceptions import SqlSearchFailure
from brujula.models import SearchResponse
from brujula.search import SearchPipeline

# Configurar logging (a stderr, para no ensuciar la salida --json)
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s",
    stream=sys.stderr,
    force=True,
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def format_response(response: SearchResponse) -> str:
    """Salida legible de un SearchResponse."""
    lines = [
        f"Búsqueda: {response.query.raw_text!r} ({response.query.language.value})",
        f"Filtros: {json.dumps(response.filters_applied.to_api_dict(), ensure_ascii=False)}",
        f"Residuo: {response.residual or '-'}",
        f"Método: {response.search_method.value}"
        + (f" (fallback: {response.fallback_reason})" if response.fallback_reason else ""),
        f"Resultados: {len(response.results)} en {response.took_ms:.0f} ms",
        "",
    ]

    for result in response.results:
        price = f"${result.price:,.0f} MXN" if result.price else "sin precio"
        place = ", ".join(part for part in (result.city, result.region) if part) or "sin ubicación"
        lines.append(
            f"{result.rank:>3}. [{result.relevance_score:.2f}] {result.title or result.property_id}"
            f" | {price} | {place}"
        )

    if response.analysis:
        lines.extend(["", response.analysis])

    if response.suggestions:
        lines.append("")
        lines.extend(f"- {tip}" for tip in response.suggestions)

    return "\n".join(lines)


async def run_search(query: str, limit: int, analysis: bool) -> SearchResponse:
    """Corre la búsqueda con el pipeline completo."""
    pipeline = SearchPipeline(analysis_enabled=analysis)
    return await pipeline.search(query, limit=limit)


async def run_suggest(query: str) -> list[str]:
    """Búsquedas refinadas para la query."""
    pipeline = SearchPipeline(analysis_enabled=False)
    return await pipeline.suggest(query)


def main():
    """Entry point del script."""
    parser = argparse.ArgumentParser(
        description="Búsqueda de propiedades en lenguaje natural (español o inglés)"
    )
    parser.add_argument("query", nargs="?", default="", help="Texto de búsqueda")
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.default_result_limit,
        help="Máximo de resultados",
    )
    parser.add_argument(
        "--no-analysis",
        action="store_true",
        help="No generar el resumen con LLM",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Imprimir el response como JSON (contrato de la API)",
    )
    parser.add_argument(
        "--suggest",
        action="store_true",
        help="Mostrar búsquedas refinadas en lugar de resultados",
    )

    args = parser.parse_args()

    try:
        if args.suggest:
            output = asyncio.run(run_suggest(args.query))
        else:
            output = asyncio.run(
                run_search(
                    args.query,
                    limit=args.limit,
                    analysis=not args.no_analysis and settings.analysis_enabled,
                )
            )
    except KeyboardInterrupt:
        logger.info("Búsqueda interrumpida por usuario")
        sys.exit(130)
    except SqlSearchFailure as e:
        logger.error("La base de propiedades no está disponible", error=str(e))
        sys.exit(2)
    except Exception as e:
        logger.error("Error fatal en búsqueda", error=str(e))
        sys.exit(1)

    if args.suggest:
        print(json.dumps(output, ensure_ascii=False) if args.json else "\n".join(output))
    elif args.json:
        print(json.dumps(output.to_api_dict(), ensure_ascii=False, indent=2))
    else:
        print(format_response(output))


if __name__ == "__main__":
    main()
