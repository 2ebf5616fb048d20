# uniform_stock/models/enums.py
from __future__ import annotations

from enum import StrEnum
from typing import Optional


class EducationLevel(StrEnum):
    """
    学段（固定枚举，落库存其显示值）：

    - KINDERGARTEN   幼儿园 / Preschool
    - ELEMENTARY     小学
    - JUNIOR_HIGH    初中
    - SENIOR_HIGH    高中
    - COLLEGE        大学
    """

    KINDERGARTEN = "Kindergarten"
    ELEMENTARY = "Elementary"
    JUNIOR_HIGH = "Junior High School"
    SENIOR_HIGH = "Senior High School"
    COLLEGE = "College"


# 前端标签 → 枚举值（UI 上写 Preschool / Junior Highschool，库里是 Kindergarten / Junior High School）
_EDUCATION_LEVEL_ALIASES = {
    "preschool": EducationLevel.KINDERGARTEN,
    "pre-school": EducationLevel.KINDERGARTEN,
    "kinder": EducationLevel.KINDERGARTEN,
    "kindergarten": EducationLevel.KINDERGARTEN,
    "elementary": EducationLevel.ELEMENTARY,
    "junior high": EducationLevel.JUNIOR_HIGH,
    "junior highschool": EducationLevel.JUNIOR_HIGH,
    "junior high school": EducationLevel.JUNIOR_HIGH,
    "senior high": EducationLevel.SENIOR_HIGH,
    "senior highschool": EducationLevel.SENIOR_HIGH,
    "senior high school": EducationLevel.SENIOR_HIGH,
    "college": EducationLevel.COLLEGE,
}


def parse_education_level(value: Optional[str]) -> Optional[EducationLevel]:
    """宽松解析学段；空值返回 None，无法识别抛 ValueError。"""
    if value is None:
        return None
    if isinstance(value, EducationLevel):
        return value
    key = " ".join(str(value).split()).lower()
    if not key:
        return None
    try:
        return _EDUCATION_LEVEL_ALIASES[key]
    except KeyError:
        raise ValueError(f"unknown education level: {value!r}") from None


class StockStatus(StrEnum):
    """
    库存状态标签，严重程度从高到低：

    OUT_OF_STOCK > CRITICAL > AT_REORDER_POINT > IN_STOCK
    """

    OUT_OF_STOCK = "Out of Stock"
    CRITICAL = "Critical"
    AT_REORDER_POINT = "At Reorder Point"
    IN_STOCK = "In Stock"


class MovementType(StrEnum):
    """
    落入 stock_movements.reason 的流水类型：

    - PURCHASE      采购入库（purchases += qty）
    - RELEASE       发放给学生（released += qty）
    - RETURN        退回（returns += qty）
    - PERIOD_CLOSE  期间结转（beginning = ending，计数清零）
    """

    PURCHASE = "PURCHASE"
    RELEASE = "RELEASE"
    RETURN = "RETURN"
    PERIOD_CLOSE = "PERIOD_CLOSE"
