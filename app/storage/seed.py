# Storage - Demo data

from datetime import timedelta
from typing import Callable

from app.core.logging import logger
from app.shared.models import utcnow
from app.storage.models import UserRole
from app.storage.repository import Storage


async def seed_demo_data(storage: Storage, hash_password: Callable[[str], str]) -> None:
    """
    Populate a storage with the treatment catalog and a small demo clinic.

    Creates three catalog treatments, an admin, a doctor and a patient
    (passwords ``admin123``, ``carmen123`` and ``ana123``), plus one
    whitening course in progress with its steps, an appointment and two
    images.

    Args:
        storage: Repository to fill
        hash_password: Function used to hash the demo passwords
    """
    await storage.create_treatment({
        "name": "Limpieza dental",
        "description": "Limpieza dental profesional para eliminar placa y sarro",
        "default_duration": 30,
    })
    whitening = await storage.create_treatment({
        "name": "Blanqueamiento dental",
        "description": "Tratamiento para aclarar el color de los dientes mediante gel activado por luz",
        "default_duration": 60,
    })
    await storage.create_treatment({
        "name": "Ortodoncia",
        "description": "Tratamiento para corregir la posición de los dientes mediante brackets o alineadores",
        "default_duration": 45,
    })

    await storage.register_staff(
        {
            "username": "admin",
            "password": hash_password("admin123"),
            "email": "admin@clinicadelica.com",
            "full_name": "Administrador Sistema",
            "role": UserRole.ADMIN,
        },
        {"position": "Director", "specialty": "Administración", "license_number": "ADM-001"},
    )

    doctor_user = await storage.register_staff(
        {
            "username": "carmen",
            "password": hash_password("carmen123"),
            "email": "carmen@clinicadelica.com",
            "full_name": "Dra. Carmen Rodríguez",
            "role": UserRole.STAFF,
            "profile_image": "https://images.unsplash.com/photo-1559839734-2b71ea197ec2?auto=format&fit=crop&w=150&h=150",
        },
        {"position": "doctor", "specialty": "Odontología General, Ortodoncista", "license_number": "ODN-12345"},
    )
    doctor = await storage.get_staff_by_user_id(doctor_user.id)

    patient_user = await storage.register_patient(
        {
            "username": "ana",
            "password": hash_password("ana123"),
            "email": "ana.perez@email.com",
            "full_name": "Ana Pérez",
            "role": UserRole.PATIENT,
            "phone": "+34 678 901 234",
            "profile_image": "https://images.unsplash.com/photo-1489424731084-a5d8b219a5bb?auto=format&fit=crop&w=150&h=150",
        },
        {
            "date_of_birth": "15/05/1985",
            "gender": "Femenino",
            "address": "Calle Alcalá 123, 28001 Madrid",
            "insurance": "Sanitas",
            "occupation": "Profesora",
            "allergies": ["Penicilina", "Látex"],
            "medical_conditions": ["Hipertensión"],
            "current_medication": "Enalapril 10mg (diario)",
            "medical_notes": (
                "Paciente con sensibilidad dental. Prefiere anestesia local para procedimientos "
                "invasivos. Visita regular cada 6 meses para limpieza."
            ),
        },
    )
    patient = await storage.get_patient_by_user_id(patient_user.id)

    now = utcnow()
    course = await storage.create_patient_treatment({
        "patient_id": patient.id,
        "treatment_id": whitening.id,
        "staff_id": doctor.id,
        "status": "in_progress",
        "progress": 60,
        "notes": (
            "Paciente responde bien al tratamiento. Se recomienda evitar alimentos que "
            "manchan durante el periodo de tratamiento."
        ),
        "start_date": now,
        "end_date": now + timedelta(days=30),
    })

    steps = [
        ("Primera sesión", "Evaluación inicial y primera aplicación del tratamiento.", "completed", now - timedelta(days=30)),
        ("Segunda sesión", "Segunda aplicación del tratamiento y evaluación de resultados intermedios.", "completed", now - timedelta(days=7)),
        ("Tercera sesión", "Aplicación final del tratamiento y evaluación de resultados.", "pending", now),
    ]
    for name, description, status, date in steps:
        await storage.create_treatment_step({
            "patient_treatment_id": course.id,
            "name": name,
            "description": description,
            "status": status,
            "date": date,
        })

    await storage.create_appointment({
        "patient_id": patient.id,
        "staff_id": doctor.id,
        "patient_treatment_id": course.id,
        "date": now,
        "duration": 60,
        "status": "confirmed",
        "notes": "Tercera sesión de blanqueamiento dental",
    })

    await storage.save_treatment_image({
        "patient_treatment_id": course.id,
        "filename": "before-treatment.jpg",
        "title": "Antes del tratamiento",
        "type": "before",
        "uploaded_by": doctor_user.id,
    })
    await storage.save_treatment_image({
        "patient_treatment_id": course.id,
        "filename": "progress-treatment.jpg",
        "title": "Progreso del tratamiento",
        "type": "progress",
        "uploaded_by": doctor_user.id,
    })

    logger.info("Seeded demo data (admin, carmen, ana)")
