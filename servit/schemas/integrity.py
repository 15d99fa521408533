from pydantic import BaseModel
from typing import List


class IssueResponse(BaseModel):
    id: str
    name: str
    problems: List[str]

    class Config:
        from_attributes = True


class IntegrityReportResponse(BaseModel):
    ok: bool
    ingredients_scanned: int
    recipes_scanned: int
    menu_items_scanned: int
    ingredient_issues: List[IssueResponse] = []
    recipe_issues: List[IssueResponse] = []
    menu_item_issues: List[IssueResponse] = []

    class Config:
        from_attributes = True
