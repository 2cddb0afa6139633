from typing import Iterable, List, Optional, Sequence

from .exceptions import NoEligibleNames


def _name_of(item) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        return item.get("qr_name") or item.get("qrName") or ""
    return item.qr_name


def eligible_names(all_names: Sequence, provisioned: Iterable[str], editing: Optional[str] = None) -> List:
    """
    Nombres del registro que todavía no tienen código generado.

    El nombre en edición se conserva aunque ya esté aprovisionado. Solo es
    un filtro de conveniencia: la restricción única (theater, qr_name) en
    la base de datos es la que impide duplicados.
    """
    taken = set(provisioned)
    return [n for n in all_names if _name_of(n) == editing or _name_of(n) not in taken]


def require_eligible(names: Sequence) -> Sequence:
    if not names:
        raise NoEligibleNames()
    return names
