"""Cloud Tasks request headers, App Engine task creation and task errors."""