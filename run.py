from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from personnelPlanning.app import create_app

app = create_app()

if __name__ == '__main__':
    # FLASK_DEBUG comes from the environment (or .env) through the Config object.
    is_debug_mode = app.config.get('FLASK_DEBUG', False)

    app.run(host='127.0.0.1', port=5000, debug=is_debug_mode, use_reloader=is_debug_mode)
