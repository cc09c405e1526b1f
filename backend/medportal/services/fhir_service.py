"""
FHIR R4 payload builders for the partner-pharmacy integration.

Only the resource shapes are produced here; nothing is sent. Codes use the
product SKU as an RxNorm placeholder until real codes are stored on products.
"""
from datetime import datetime, timezone

RXNORM_SYSTEM = "http://www.nlm.nih.gov/research/umls/rxnorm"
UCUM_SYSTEM = "http://unitsofmeasure.org"
PARTNER_PHARMACY = "Organization/partner-pharmacy"
PORTAL_ORGANIZATION = "Organization/med-portal"

REQUIRED_FIELDS = ("resourceType", "id", "status")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_medication_request(order) -> dict:
    total_units = sum(item.quantity for item in order.items)
    return {
        "resourceType": "MedicationRequest",
        "id": f"med-req-{order.id}",
        "status": "active",
        "intent": "order",
        "medicationCodeableConcept": {
            "coding": [
                {"system": RXNORM_SYSTEM, "code": item.product.sku, "display": item.product.name}
                for item in order.items
            ],
        },
        "subject": {
            "reference": f"Patient/{order.patient_email}",
            "display": order.patient_name,
        },
        "authoredOn": _now_iso(),
        "requester": {
            "reference": f"Practitioner/{order.doctor_id}" if order.doctor_id else PORTAL_ORGANIZATION,
            "display": "Medical Order Portal",
        },
        "dosageInstruction": [
            {
                "text": f"Take as directed - Quantity: {item.quantity}",
                "timing": {"repeat": {"frequency": 1, "period": 1, "periodUnit": "d"}},
            }
            for item in order.items
        ],
        "dispenseRequest": {
            "quantity": {"value": total_units, "unit": "units", "system": UCUM_SYSTEM, "code": "units"},
            "performer": {"reference": PARTNER_PHARMACY},
        },
        "meta": {
            "profile": ["http://hl7.org/fhir/StructureDefinition/MedicationRequest"],
            "tag": [
                {
                    "system": "http://terminology.hl7.org/CodeSystem/v3-ActReason",
                    "code": "TREAT",
                    "display": "Treatment",
                }
            ],
        },
    }


def create_medication_dispense(medication_request: dict, status: str = "completed") -> dict:
    return {
        "resourceType": "MedicationDispense",
        "id": f"med-disp-{medication_request['id']}",
        "status": status,
        "medicationCodeableConcept": medication_request["medicationCodeableConcept"],
        "subject": medication_request["subject"],
        "performer": [
            {"actor": {"reference": PARTNER_PHARMACY, "display": "Partner Pharmacy"}},
        ],
        "authorizingPrescription": [
            {"reference": f"MedicationRequest/{medication_request['id']}"},
        ],
        "quantity": medication_request["dispenseRequest"]["quantity"],
        "whenHandedOver": _now_iso(),
        "meta": {"profile": ["http://hl7.org/fhir/StructureDefinition/MedicationDispense"]},
    }


def validate_resource(resource: dict) -> bool:
    """Presence check only; a real deployment would run a FHIR validator."""
    return all(field in resource for field in REQUIRED_FIELDS)
