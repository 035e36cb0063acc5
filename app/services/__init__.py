# Services are imported by module where needed
