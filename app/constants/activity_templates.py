from app.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- QUOTATIONS ----------------
    ActivityCode.CREATE_QUOTATION:
        "{actor} created quotation {target_name}",

    ActivityCode.UPDATE_QUOTATION:
        "{actor} updated quotation {target_name} to revision {revision}: {changes}",

    ActivityCode.DELETE_QUOTATION:
        "{actor} deleted quotation {target_name}",

    ActivityCode.ATTACH_ENGINEERING_PROJECT:
        "{actor} linked quotation {target_name} to engineering project {project_ref}",

    ActivityCode.SEND_QUOTATION:
        "{actor} sent quotation {target_name} to customer",

    ActivityCode.CUSTOMER_RESPONSE:
        "{actor} recorded customer response '{decision}' on quotation {target_name}",

    ActivityCode.RECEIVE_PO:
        "{actor} recorded PO {po_number} for quotation {target_name}",

    ActivityCode.CONVERT_QUOTATION_TO_SALES_ORDER:
        "{actor} converted quotation {target_name} to sales order {so_number}",

    ActivityCode.EXPIRE_QUOTATION:
        "{actor} expired quotation {target_name}: {changes}",

    # ---------------- BOQ ----------------
    ActivityCode.CREATE_BOQ:
        "{actor} created BOQ {target_name} for quotation {quotation_number}",

    ActivityCode.UPDATE_BOQ_ITEMS:
        "{actor} {changes} on BOQ {target_name}",

    ActivityCode.UPDATE_ETO_STATUS:
        "{actor} moved BOQ {target_name} to {eto_status} ({progress}%)",

    # ---------------- ENGINEERING ----------------
    ActivityCode.SUBMIT_DRAWING:
        "{actor} submitted drawing {target_name} for quotation {quotation_number}",

    ActivityCode.RESUBMIT_DRAWING:
        "{actor} resubmitted drawing {target_name} as {revision}",

    ActivityCode.APPROVE_DRAWING:
        "{actor} approved drawing {target_name} as {role}",

    ActivityCode.REJECT_DRAWING:
        "{actor} rejected drawing {target_name} as {role}",

    ActivityCode.DRAWING_COMPLETE:
        "{actor} completed engineering for quotation {target_name}",

    # ---------------- PRODUCTION ----------------
    ActivityCode.CREATE_WORK_ORDER:
        "{actor} created work order {target_name} for sales order {so_number}",

    ActivityCode.UPDATE_WORK_ORDER_STATUS:
        "{actor} moved work order {target_name} from {from_status} to {to_status}",

    ActivityCode.CREATE_JOURNEY:
        "{actor} created production journey {target_name}",

    ActivityCode.UPDATE_JOURNEY_STATUS:
        "{actor} moved production journey {target_name} from {from_status} to {to_status}",
}
