# File: backend/run.py
"""Application entry point."""
import os
import click
from flask.cli import with_appcontext
from dotenv import load_dotenv

# Load environment variables before the config classes read them
load_dotenv()

from qr_attendance import create_app, db  # noqa: E402

# Create Flask app
app = create_app(os.getenv('FLASK_ENV', 'development'))


@app.cli.command()
@with_appcontext
def seed_demo():
    """Create one verified lecturer and one verified student for local use."""
    from qr_attendance.models.user import Lecturer, Student, User

    accounts = [
        (Lecturer, 'Demo Lecturer', 'lecturer@qr-attendance.local', None),
        (Student, 'Demo Student', 'student@qr-attendance.local', 'DEMO/2024/001'),
    ]

    for account_class, name, email, matric_number in accounts:
        if User.query.filter_by(email=email).first():
            continue
        user = account_class(
            name=name,
            email=email,
            department='Computer Science',
            matric_number=matric_number,
            is_verified=True
        )
        user.set_password('demo1234')
        db.session.add(user)

    db.session.commit()

    click.echo('Demo accounts ready (password: demo1234)')
    click.echo('  Lecturer: lecturer@qr-attendance.local')
    click.echo('  Student:  student@qr-attendance.local')


@app.cli.command()
@with_appcontext
def reset_db():
    """Reset database completely."""
    if click.confirm('This will delete all data and recreate tables. Continue?'):
        db.drop_all()
        db.create_all()
        click.echo('Database reset complete.')


if __name__ == '__main__':
    # Development server
    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '127.0.0.1')
    debug = os.environ.get('FLASK_ENV') == 'development'

    app.run(host=host, port=port, debug=debug)
