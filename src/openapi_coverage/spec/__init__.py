from openapi_coverage.spec.catalog import HTTP_METHODS, DeclaredOperation, SpecCatalog
from openapi_coverage.spec.matcher import PathMatcher, template_matches

__all__ = ["HTTP_METHODS", "DeclaredOperation", "PathMatcher", "SpecCatalog", "template_matches"]
