from __future__ import annotations

from sqlalchemy.engine import URL

from .utility import SqlUtility

DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"


class MSSqlUtility(SqlUtility):
    max_nchar_length = 4000
    max_nvarchar_length = 4000
    max_varchar_length = 8000

    def split_batches(self, script: str) -> list[str]:
        """T-SQL scripts are split on `GO` lines."""
        batches: list[str] = []
        current: list[str] = []
        for line in script.splitlines():
            if line.strip().upper() == "GO":
                if "".join(current).strip():
                    batches.append("\n".join(current).strip())
                current = []
            else:
                current.append(line)
        if "".join(current).strip():
            batches.append("\n".join(current).strip())
        return batches

    @staticmethod
    def build_connection_string(
        server: str,
        instance: str = "",
        database: str = "",
        account: str = "",
        password: str = "",
        trusted: bool = False,
        management: bool = False,
        driver: str = DEFAULT_DRIVER,
    ) -> str | None:
        """An mssql+pyodbc URL, or None when required parts are missing.

        `management` connects to `master` instead of `database`.
        """
        server = (server or "").strip()
        if not server:
            return None
        if not trusted and not (account and password):
            return None
        database = "master" if management else (database or "").strip()
        if not database:
            return None
        host = f"{server}\\{instance.strip()}" if (instance or "").strip() else server
        query = {"driver": driver, "TrustServerCertificate": "yes"}
        if trusted:
            query["Trusted_Connection"] = "yes"
        url = URL.create(
            "mssql+pyodbc",
            username=None if trusted else account,
            password=None if trusted else password,
            host=host,
            database=database,
            query=query,
        )
        return url.render_as_string(hide_password=False)
