"""
Package configuration, persisted as an INI file under ~/.config/costbasis.
"""
import os
import configparser
from decimal import Decimal


CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".config", "costbasis")
CONFIG_PATH = os.path.join(CONFIG_DIR, "costbasis.cfg")


class CostbasisConfig(configparser.ConfigParser):
    def make_default(self):
        self["db"] = {
            "dialect": "sqlite",
            "database": os.path.join(CONFIG_DIR, "costbasis.db"),
        }
        self["test"] = {"dialect": "sqlite"}
        self["fees"] = {"option_contract_fee": "0.75"}
        self["pnl"] = {"neutral_threshold": "0.01"}
        self["cache"] = {"ttl_seconds": "300"}

    @property
    def db_uri(self):
        return self._make_db_uri(**self["db"])

    @property
    def test_db_uri(self):
        return self._make_db_uri(**self["test"])

    @property
    def option_contract_fee(self) -> Decimal:
        return Decimal(self.get("fees", "option_contract_fee", fallback="0.75"))

    @property
    def neutral_threshold(self) -> Decimal:
        return Decimal(self.get("pnl", "neutral_threshold", fallback="0.01"))

    @property
    def cache_ttl(self) -> float:
        return self.getfloat("cache", "ttl_seconds", fallback=300.0)

    def _make_db_uri(self, **kwargs):
        schema = "{dialect}"
        if kwargs.get("driver", None):
            schema += "+{driver}"

        credentials = ""
        if kwargs.get("username", None):
            credentials = "{username}"
            if kwargs.get("password", None):
                credentials += ":{password}"

        authority = ""
        if kwargs.get("host", None):
            authority = "@{host}"
            if kwargs.get("port", None):
                authority += ":{port}"

        db = ""
        if kwargs.get("database", None):
            db = "/{database}"

        template = "{schema}://{credentials}{authority}{db}".format(
            schema=schema, credentials=credentials, authority=authority, db=db
        )
        return template.format(**kwargs)


CONFIG = CostbasisConfig()


# If no config exists, generate & write defaults
if os.path.exists(CONFIG_PATH):
    CONFIG.read(CONFIG_PATH)
else:
    CONFIG.make_default()
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, "w") as configfile:
        CONFIG.write(configfile)
