# Endive language package
# This package provides a parser, analyzer, interpreter and Java generator
# for the Endive language.
from .analyzer import Analyzer, analyze_program
from .errors import AnalysisError, EndiveError, EvaluationError, LexError, ParseError
from .generator import generate
from .interpreter import Interpreter, run_program
from .parser import parse_program

__all__ = [
    'parse_program',
    'analyze_program',
    'run_program',
    'generate',
    'Analyzer',
    'Interpreter',
    'EndiveError',
    'LexError',
    'ParseError',
    'AnalysisError',
    'EvaluationError',
]
