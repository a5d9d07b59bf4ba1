# Clinic and training-academy API package
# Entry point: clinic.main.create_app
