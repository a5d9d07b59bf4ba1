# Schemas package initialization
