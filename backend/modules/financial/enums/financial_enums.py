from enum import Enum


class FinancialRecordType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


SALES_CATEGORY = "vendas"
