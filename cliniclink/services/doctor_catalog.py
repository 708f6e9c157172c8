from pydantic import BaseModel


class Doctor(BaseModel):
    id: str
    name: str
    specialty: str


DOCTORS: tuple[Doctor, ...] = (
    Doctor(id="1", name="Dr. Smith", specialty="Cardiologist"),
    Doctor(id="2", name="Dr. Patel", specialty="Dermatologist"),
    Doctor(id="3", name="Dr. Kumar", specialty="Neurologist"),
)

_BY_ID = {d.id: d for d in DOCTORS}


def list_doctors() -> list[Doctor]:
    return list(DOCTORS)


def get_doctor(doctor_id: str | None) -> Doctor | None:
    if not doctor_id:
        return None
    return _BY_ID.get(doctor_id)
