# Services package init
"""
FinSight Backend — Services Layer
===================================

Service Inventory:
    - UserService: signup (pre-save hashing via the model) and login
    - AdvisorService: prompt building + completion + JSON recovery
    - LLMService (abstract): single-turn completion contract
    - OpenRouterService / GeminiService: concrete completion providers
    - json_extractor: tolerant JSON recovery from free text
    - validation: required-field checks shared by the services
"""
