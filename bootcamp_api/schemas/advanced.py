from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

Op = Literal["eq", "gt", "gte", "lt", "lte", "in"]
Dir = Literal["asc", "desc"]

# field -> {operator -> value}
Predicate = Dict[str, Dict[str, Any]]


class FilterParameter(BaseModel):
    field: str
    op: Op = "eq"
    value: Union[str, List[str]]


class SortKey(BaseModel):
    field: str
    dir: Dir = "asc"

    def to_token(self) -> str:
        return f"-{self.field}" if self.dir == "desc" else self.field


class QuerySpec(BaseModel):
    filters: List[FilterParameter] = []
    select: Optional[List[str]] = None
    sort: List[SortKey] = []
    page: int = Field(1, ge=1)
    limit: int = Field(25, ge=1)

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def end_index(self) -> int:
        return self.page * self.limit

    def predicate(self) -> Predicate:
        out: Predicate = {}
        for f in self.filters:
            out.setdefault(f.field, {})[f.op] = f.value
        return out

    def to_query_params(self) -> List[Tuple[str, str]]:
        """Encode back into ``field[op]=value`` query pairs."""
        pairs: List[Tuple[str, str]] = []
        for f in self.filters:
            key = f.field if f.op == "eq" else f"{f.field}[{f.op}]"
            value = ",".join(f.value) if isinstance(f.value, list) else f.value
            pairs.append((key, value))
        if self.select:
            pairs.append(("select", ",".join(self.select)))
        if self.sort:
            pairs.append(("sort", ",".join(s.to_token() for s in self.sort)))
        pairs.append(("page", str(self.page)))
        pairs.append(("limit", str(self.limit)))
        return pairs


class PageLink(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    next: Optional[PageLink] = None
    previous: Optional[PageLink] = None


class PageResult(BaseModel):
    total: int
    data: List[Dict[str, Any]] = []
    pagination: Pagination = Pagination()

    def envelope(self) -> Dict[str, Any]:
        return {
            "success": True,
            "count": len(self.data),
            "total": self.total,
            "pagination": self.pagination.model_dump(exclude_none=True),
            "data": self.data,
        }
