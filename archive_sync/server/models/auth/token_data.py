"""
Archive Sync Server - Token Data Model

Pydantic model for data carried in identity tokens.
"""

from typing import List, Optional, Union
from pydantic import BaseModel


class TokenData(BaseModel):
    """Data stored in an identity token"""
    subject: str
    audience: Optional[Union[str, List[str]]] = None
