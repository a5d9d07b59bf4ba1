# Controllers package initialization
# Each module exposes one Flask blueprint; create_app registers them all.
