from __future__ import annotations

from sqlalchemy.engine import URL

from .utility import SqlUtility


class OracleUtility(SqlUtility):
    max_nchar_length = 2000
    max_nvarchar_length = 2000
    max_varchar_length = 4000

    @staticmethod
    def build_connection_string(
        host: str,
        port: int = 1521,
        service_name: str = "",
        user: str = "",
        password: str = "",
    ) -> str | None:
        host = (host or "").strip()
        service_name = (service_name or "").strip()
        if not host or not service_name or not user or not password:
            return None
        url = URL.create(
            "oracle+oracledb",
            username=user,
            password=password,
            host=host,
            port=int(port),
            query={"service_name": service_name},
        )
        return url.render_as_string(hide_password=False)
