"""
Entry point for Flask.

Usage (from project root):

    flask --app run.py --debug run

First run on an empty database:

    flask --app run.py init-db
    flask --app run.py create-user admin@example.com --role admin
    flask --app run.py seed-demo

Schema changes afterwards go through Flask-Migrate (flask db migrate / flask db upgrade).
"""

from pharmadist import create_app

# WSGI application object; `flask run` looks for this `app` variable.
app = create_app()

if __name__ == "__main__":
    # Dev only; use `flask run` or a WSGI server instead.
    app.run(debug=True)
