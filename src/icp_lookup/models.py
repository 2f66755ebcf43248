"""
Data models for ICP Lookup
Defines the structure of a single registration record
"""

from pydantic import BaseModel, ConfigDict


class Result(BaseModel):
    """ICP registration record for one looked-up domain"""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    input: str
    query_url: str

    # Scraped from the detail page
    license: str = ""
    verify_time: str = ""
    com_name: str = ""
    typ: str = ""  # organization type
    permit: str = ""
    host: str = ""

    def __str__(self) -> str:
        return f"{self.input}: {self.license} ({self.com_name})"
