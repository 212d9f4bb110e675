"""SQL parsing: AST node definitions and the recursive descent parser"""
