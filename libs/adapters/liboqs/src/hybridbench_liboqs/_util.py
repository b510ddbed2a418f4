from __future__ import annotations
import logging
import os
from typing import Optional, Sequence

log = logging.getLogger(__name__)

_OQS = None


def try_import_oqs():
    """Return the ``oqs`` module, or ``None`` when liboqs cannot be loaded.

    liboqs-python exits the interpreter when its shared library is missing and
    cannot be built, hence ``SystemExit`` alongside regular import failures.
    """
    global _OQS
    if _OQS is not None:
        return _OQS
    try:
        import oqs  # type: ignore
    except (Exception, SystemExit) as exc:
        log.debug("oqs unavailable: %s", exc)
        return None
    _OQS = oqs
    return oqs


def pick_kem_algorithm(oqs_mod, env_var: str, candidates: Sequence[str]) -> Optional[str]:
    """First mechanism in ``candidates`` that liboqs can instantiate.

    ``env_var`` names an override that is tried before the candidates.
    """
    order: list[str] = []
    env_val = os.getenv(env_var)
    if env_val:
        order.append(env_val)
    order += [c for c in candidates if c != env_val]
    for name in order:
        try:
            with oqs_mod.KeyEncapsulation(name):
                return name
        except Exception:
            continue
    return None
