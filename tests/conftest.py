from sanic import Sanic

# create_app() may be called by more than one test module
Sanic.test_mode = True
