"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
from functools import wraps
from typing import Generator

import click

from .exit_codes import SUCCESS, INTERRUPTED, USAGE_ERROR, CommandError, get_exit_code_for_exception
from .exceptions import RelengError


def emit(item) -> None:
    """Print one item as a JSON line."""
    print(json.dumps(item, ensure_ascii=False), flush=True)


def _error_object(e: Exception, exit_code: int) -> dict:
    return {"error": str(e), "type": type(e).__name__, "exit_code": exit_code}


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - JSONL output on stdout for returned dicts, lists and generators
    - Commands returning None handle their own output (tables)
    - Consistent error handling with exit codes
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)

            if result is None:
                pass
            elif isinstance(result, dict):
                emit(result)
            elif isinstance(result, (list, tuple, Generator)):
                for item in result:
                    emit(item)
            else:
                print(result, flush=True)

        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            click.echo(f"Error: {e}", err=True)
            emit(_error_object(e, e.exit_code))
            sys.exit(e.exit_code)
        except RelengError as e:
            code = get_exit_code_for_exception(e)
            click.echo(f"Error: {e}", err=True)
            emit(_error_object(e, code))
            sys.exit(code)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            emit(_error_object(e, USAGE_ERROR))
            sys.exit(USAGE_ERROR)

        sys.exit(SUCCESS)

    return wrapper
