# run.py
from reselltrack import create_app, db
from reselltrack.services.record_store import seed_categories
from flask.cli import with_appcontext
import logging

app = create_app()
logging.basicConfig(level=logging.DEBUG)

@app.cli.command('init-db')
@with_appcontext
def init_db():
    db.create_all()
    seed_categories(app.config.get('DEFAULT_CATEGORIES', []))
    print('Database initialized.')

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
