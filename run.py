# run.py
import os

from novayra import create_app

app = create_app(os.getenv('FLASK_ENV', 'default'))

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=app.config.get('PORT', 3000), debug=app.config.get('DEBUG', False))
