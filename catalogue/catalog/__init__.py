"""Catalog filtering and browsing.

Turns facet selections, keywords and a page number into counted, paginated
listings over the category taxonomy held by the content service.
"""

from catalogue.catalog.assembler import FilterResult, ResultAssembler, SelectedFilter
from catalogue.catalog.engine import EngineResult, FilterEngine, PageStream, matches
from catalogue.catalog.facets import FacetCounter, FacetOption, FacetOptions
from catalogue.catalog.keywords import join_keywords, parse_keywords
from catalogue.catalog.planner import QueryPlan, QueryPlanner, Strategy
from catalogue.catalog.registry import FacetDefinition, FacetRegistry, get_facet_registry
from catalogue.catalog.repository import CatalogQuery, CatalogRepository
from catalogue.catalog.selection import UNCATEGORISED, FilterSelection
from catalogue.catalog.service import CatalogService, get_catalog_service
from catalogue.catalog.taxonomy import CategoryCatalog, CategoryNode

__all__ = [
    # Taxonomy
    "CategoryCatalog",
    "CategoryNode",
    # Registry
    "FacetDefinition",
    "FacetRegistry",
    "get_facet_registry",
    # Selection
    "FilterSelection",
    "UNCATEGORISED",
    "join_keywords",
    "parse_keywords",
    # Planning and execution
    "QueryPlan",
    "QueryPlanner",
    "Strategy",
    "EngineResult",
    "FilterEngine",
    "PageStream",
    "matches",
    # Facets
    "FacetCounter",
    "FacetOption",
    "FacetOptions",
    # Assembly
    "FilterResult",
    "ResultAssembler",
    "SelectedFilter",
    # Repository
    "CatalogQuery",
    "CatalogRepository",
    # Service
    "CatalogService",
    "get_catalog_service",
]
