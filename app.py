import logging

from flask import Flask

from routes import register_blueprints
from services.forms import DocumentAssembler, TemplateCache
from services.intake_service import InMemoryIntakeStore

def create_app(config_object='config.Config', intake_store=None, template_loader=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Intake store and the document assembler that owns the template cache
    store = intake_store if intake_store is not None else InMemoryIntakeStore()
    loader = template_loader or store.list_templates
    app.extensions['intake_store'] = store
    app.extensions['form_assembler'] = DocumentAssembler(TemplateCache(loader=loader))

    # Register blueprints
    register_blueprints(app)

    return app

app = create_app()

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5005, debug=True)
