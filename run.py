# ==============================================================================
# run.py
# ------------------------------------------------------------------------------
# The main entry point to launch the Flask application.
# ==============================================================================

from babyboss import create_app, db, sheets
from babyboss.models import StoredCollection

# Create the Flask application instance using the factory function
app = create_app()

@app.shell_context_processor
def make_shell_context():
    """Provides a shell context for the `flask shell` command."""
    return {
        'db': db,
        'sheets': sheets,
        'StoredCollection': StoredCollection
    }

if __name__ == '__main__':
    app.run(debug=True)
