"""
Post-commit side effects.

A primary write (message posted, edited, reacted to) registers an ordered
list of hooks. They run one by one once the write is committed; a failing
hook is logged and never stops the others or reaches the original caller.
"""
import logging
from functools import partial

from django.db import transaction

logger = logging.getLogger(__name__)


def run_hooks(hooks, *args, **kwargs):
    for hook in hooks:
        try:
            hook(*args, **kwargs)
        except Exception:
            logger.exception("post-commit hook %s failed", getattr(hook, "__name__", hook))


def on_commit(hooks, *args, **kwargs):
    transaction.on_commit(partial(run_hooks, list(hooks), *args, **kwargs))
