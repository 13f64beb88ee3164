# app/constants/activity_codes.py

from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- QUOTATIONS ----------------
    CREATE_QUOTATION = "CREATE_QUOTATION"
    UPDATE_QUOTATION = "UPDATE_QUOTATION"
    DELETE_QUOTATION = "DELETE_QUOTATION"
    ATTACH_ENGINEERING_PROJECT = "ATTACH_ENGINEERING_PROJECT"
    SEND_QUOTATION = "SEND_QUOTATION"
    CUSTOMER_RESPONSE = "CUSTOMER_RESPONSE"
    RECEIVE_PO = "RECEIVE_PO"
    CONVERT_QUOTATION_TO_SALES_ORDER = "CONVERT_QUOTATION_TO_SALES_ORDER"
    EXPIRE_QUOTATION = "EXPIRE_QUOTATION"

    # ---------------- BOQ ----------------
    CREATE_BOQ = "CREATE_BOQ"
    UPDATE_BOQ_ITEMS = "UPDATE_BOQ_ITEMS"
    UPDATE_ETO_STATUS = "UPDATE_ETO_STATUS"

    # ---------------- ENGINEERING ----------------
    SUBMIT_DRAWING = "SUBMIT_DRAWING"
    RESUBMIT_DRAWING = "RESUBMIT_DRAWING"
    APPROVE_DRAWING = "APPROVE_DRAWING"
    REJECT_DRAWING = "REJECT_DRAWING"
    DRAWING_COMPLETE = "DRAWING_COMPLETE"

    # ---------------- PRODUCTION ----------------
    CREATE_WORK_ORDER = "CREATE_WORK_ORDER"
    UPDATE_WORK_ORDER_STATUS = "UPDATE_WORK_ORDER_STATUS"
    CREATE_JOURNEY = "CREATE_JOURNEY"
    UPDATE_JOURNEY_STATUS = "UPDATE_JOURNEY_STATUS"
