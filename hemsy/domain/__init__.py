"""Domain packages - clients, appointments, email"""
