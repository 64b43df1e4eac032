"""
evalex expression language.

Tokenizer, operator-tree builder and evaluator.

Usage:
    from evalex.core.expression_lang import parse_expr, evaluate
    from evalex.core.configuration import MappingConfiguration

    expr = parse_expr("box1 + box2")
    result = evaluate(expr, MappingConfiguration({"box1": 100, "box2": 50}))
    # result == IntValue(value=150)
"""

from evalex.core.expression_lang.evaluator import evaluate
from evalex.core.expression_lang.parser import build, parse_assignment, parse_expr
from evalex.core.expression_lang.tokenizer import Token, TokenKind, tokenize

__all__ = ["Token", "TokenKind", "build", "evaluate", "parse_assignment", "parse_expr", "tokenize"]
