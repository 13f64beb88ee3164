# app/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- WORKFLOW ----------------
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    VERSION_CONFLICT = "VERSION_CONFLICT"

    # ---------------- QUOTATIONS ----------------
    QUOTATION_NOT_FOUND = "QUOTATION_NOT_FOUND"
    QUOTATION_CANNOT_DELETE = "QUOTATION_CANNOT_DELETE"

    # ---------------- BOQ ----------------
    BOQ_NOT_FOUND = "BOQ_NOT_FOUND"
    BOQ_ITEM_NOT_FOUND = "BOQ_ITEM_NOT_FOUND"
    BOQ_ALREADY_EXISTS = "BOQ_ALREADY_EXISTS"

    # ---------------- ENGINEERING ----------------
    DRAWING_NOT_FOUND = "DRAWING_NOT_FOUND"
    APPROVAL_NOT_FOUND = "APPROVAL_NOT_FOUND"
    REVIEW_COMMENT_NOT_FOUND = "REVIEW_COMMENT_NOT_FOUND"

    # ---------------- SALES / PRODUCTION ----------------
    SALES_ORDER_NOT_FOUND = "SALES_ORDER_NOT_FOUND"
    WORK_ORDER_NOT_FOUND = "WORK_ORDER_NOT_FOUND"
    WORK_ORDER_STEP_NOT_FOUND = "WORK_ORDER_STEP_NOT_FOUND"
    JOURNEY_NOT_FOUND = "JOURNEY_NOT_FOUND"
    JOURNEY_STEP_NOT_FOUND = "JOURNEY_STEP_NOT_FOUND"
