"""WSGI / Flask CLI entry point.

    flask --app app run
    flask --app app reconcile-attendance
"""

from src.hostel_attendance.hostel_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
