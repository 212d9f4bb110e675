"""Translation core: operator catalog, node translator, query builder and document"""
