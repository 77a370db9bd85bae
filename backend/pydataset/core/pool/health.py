"""
Liveness check for external DB connections.
"""

from typing import Any

from pydataset.models import ProductTypeEnum

from .connect import execute


def health_check(conn: Any, product_type: ProductTypeEnum | None) -> bool:
    """
    True if the connection answers. MySQL uses the protocol ping (no reconnect);
    everything else runs SELECT 1.
    """
    if conn is None:
        return False
    if product_type == ProductTypeEnum.MYSQL:
        try:
            conn.ping(reconnect=False)
            return True
        except Exception:
            return False
    cur = None
    try:
        cur = execute(conn, "SELECT 1", product_type=product_type)
        cur.fetchone()
        return True
    except Exception:
        return False
    finally:
        if cur is not None:
            cur.close()
