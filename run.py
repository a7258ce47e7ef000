"""
Entry point for Flask.

Usage (from project root):

    export SUPER_ADMIN_EMAILS="owner@example.com"
    flask --app run.py init-db
    flask --app run.py --debug run

"""

from ledger_app import create_app

# WSGI application object; `flask run` looks for this `app` variable.
app = create_app()

if __name__ == "__main__":
    # Direct `python run.py` usage is for development only.
    app.run(debug=True)
