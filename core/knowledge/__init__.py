from core.knowledge.scoper import GLOBAL_SCOPE, KnowledgeScopes, format_scope, scope_rules

__all__ = ["GLOBAL_SCOPE", "KnowledgeScopes", "format_scope", "scope_rules"]
