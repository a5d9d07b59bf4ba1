# Services package initialization
# Business rules live here; controllers only translate HTTP to service calls.
