"""
Rule-based task decomposition.

Used whenever the reasoning service is not configured or fails. Each keyword
family found in the brief contributes a fixed backend and frontend task; a
brief that matches nothing gets the eight-task baseline project.
"""

from typing import Any, Dict, List, Optional, Tuple

from briefsmith.agents.decomposer import TaskDecomposer
from briefsmith.core.logger import logger
from briefsmith.core.schemas import ProjectBrief, TaskPriority, TaskType, TechnicalTask
from briefsmith.synthesis.keywords import SubstringClassifier, TextClassifier, slugify

B, F = TaskType.BACKEND, TaskType.FRONTEND
HIGH, MEDIUM = TaskPriority.HIGH, TaskPriority.MEDIUM

Blueprint = Dict[str, Any]


def _task(title: str, type_: TaskType, priority: TaskPriority, hours: float,
          description: str, criteria: List[str]) -> Blueprint:
    return {
        "title": title,
        "type": type_,
        "priority": priority,
        "estimated_hours": hours,
        "description": description,
        "acceptance_criteria": criteria,
    }


# ---------------------------------------------------------------------
# KEYWORD FAMILIES
# ---------------------------------------------------------------------
FAMILIES: List[Tuple[str, Tuple[str, ...], List[Blueprint]]] = [
    ("authentication", ("auth", "login", "user"), [
        _task("Implement Advanced Authentication System", B, HIGH, 16,
              "Create a comprehensive authentication system with modern security practices, "
              "multi-factor authentication, and social login integration",
              ["User registration with email verification",
               "Secure login with password hashing (bcrypt)",
               "JWT token-based authentication",
               "Password reset functionality",
               "Multi-factor authentication (TOTP)",
               "Social login integration (Google, GitHub)",
               "Rate limiting for security",
               "Session management with refresh tokens",
               "Account lockout after failed attempts",
               "Audit logging for security events"]),
        _task("Build Modern Authentication UI Components", F, HIGH, 12,
              "Create responsive, accessible authentication forms with real-time validation",
              ["Responsive login/register forms",
               "Real-time form validation",
               "Password strength indicator",
               "Social login buttons",
               "Multi-factor authentication UI",
               "Password recovery flow",
               "Loading states and error handling",
               "Accessibility compliance (ARIA labels)"]),
    ]),
    ("task management", ("task", "todo", "management"), [
        _task("Develop Comprehensive Task Management API", B, HIGH, 20,
              "Build a scalable task management system with categories, priorities, and collaboration",
              ["CRUD operations for tasks",
               "Task categorization and tagging",
               "Priority levels and due dates",
               "Task dependencies and subtasks",
               "Advanced filtering and search",
               "Bulk operations support",
               "Real-time notifications",
               "Activity history and audit trail",
               "Data export functionality",
               "Performance optimization with indexing"]),
        _task("Create Interactive Task Management Dashboard", F, HIGH, 18,
              "Build an interactive dashboard with drag-and-drop and real-time updates",
              ["Kanban board with drag-and-drop",
               "Task creation and editing modals",
               "Advanced filtering and search",
               "Real-time updates via WebSocket",
               "Bulk selection and operations",
               "Calendar view integration",
               "Progress tracking and analytics",
               "Responsive design for all devices"]),
    ]),
    ("collaboration", ("shar", "collaborat", "team"), [
        _task("Implement Advanced Collaboration System", B, MEDIUM, 24,
              "Create a collaboration platform with real-time features and permission management",
              ["Team and workspace management",
               "Granular permission system",
               "Real-time collaboration features",
               "Comment and mention system",
               "File sharing and attachments",
               "Activity feeds and notifications",
               "Conflict resolution mechanisms",
               "Version control for shared items"]),
        _task("Build Collaborative User Interface", F, MEDIUM, 16,
              "Design and implement real-time collaborative features",
              ["User presence indicators",
               "Comment and annotation system",
               "File upload with drag-and-drop",
               "Team member management UI",
               "Permission settings interface",
               "Activity timeline and feeds",
               "Notification center"]),
    ]),
    ("e-commerce", ("ecommerce", "shop", "product"), [
        _task("Build Advanced E-commerce Backend", B, HIGH, 32,
              "Create an e-commerce system with inventory, orders, and payment processing",
              ["Product catalog with variants",
               "Inventory management system",
               "Shopping cart and checkout",
               "Order processing workflow",
               "Payment gateway integration",
               "Shipping and tax calculations",
               "Customer management system",
               "Promotional codes and discounts"]),
        _task("Create Modern E-commerce Frontend", F, HIGH, 28,
              "Build a responsive, fast-loading storefront with advanced shopping features",
              ["Product catalog with filtering",
               "Advanced search functionality",
               "Shopping cart with persistence",
               "Checkout flow optimization",
               "Product image gallery",
               "Customer account dashboard",
               "Order tracking interface"]),
    ]),
]

API_INFRASTRUCTURE = _task(
    "Setup Production-Ready API Infrastructure", B, HIGH, 12,
    "Establish a robust API foundation with security, monitoring, and scalability features",
    ["FastAPI application with typed request models",
     "Comprehensive middleware setup",
     "Security headers and CORS",
     "Request/response logging",
     "Error handling middleware",
     "API documentation (OpenAPI)",
     "Health check endpoints",
     "Rate limiting and throttling",
     "Environment configuration",
     "Docker containerization"],
)

# ---------------------------------------------------------------------
# BASELINE PROJECT (no family matched)
# ---------------------------------------------------------------------
BASELINE: List[Blueprint] = [
    _task("Design Database Schema and Backend Architecture", B, HIGH, 20,
          "Build a scalable, secure backend foundation: normalized schema with relationships and "
          "indexes, migrations, validated data models, connection pooling, versioned REST API, "
          "error handling, logging, and health endpoints.",
          ["Complete database schema diagram created",
           "All data models implemented with proper relationships",
           "Database migrations tested and documented",
           "API endpoints follow RESTful conventions",
           "Environment configuration properly set up",
           "Database queries optimized with proper indexing",
           "Error handling middleware implemented",
           "API documentation generated (OpenAPI)"]),
    _task("Implement User Authentication and Authorization System", B, HIGH, 18,
          "Create a production-ready authentication system: registration with verification, "
          "hashed passwords, JWT with refresh tokens, password reset, role-based access control, "
          "and session expiry handling.",
          ["User registration with email verification working",
           "Secure login system with proper password hashing",
           "JWT tokens generated and validated correctly",
           "Password reset flow fully functional",
           "Role-based permissions implemented",
           "Refresh token mechanism working",
           "Security best practices followed (rate limiting, etc.)",
           "Social login integration completed"]),
    _task("Develop Core Business Logic and API Endpoints", B, HIGH, 28,
          "Implement the main functionality and business rules: CRUD for all main entities, "
          "validation workflows, filtering, pagination, sorting, search, bulk operations, "
          "export, and audit trails.",
          ["All CRUD operations working correctly",
           "Business validation rules enforced",
           "Advanced filtering and search implemented",
           "Pagination working on all list endpoints",
           "Data relationships properly handled",
           "Bulk operations tested and optimized",
           "Export functionality working (CSV, PDF, etc.)",
           "Activity logs captured for important actions"]),
    _task("Build Responsive UI Components and Layout System", F, HIGH, 24,
          "Create a modern, accessible, responsive interface: reusable components, layout system, "
          "navigation, validated forms, data display, loading and empty states, modals.",
          ["Component library with reusable components",
           "Fully responsive design for all screen sizes",
           "Navigation system working smoothly",
           "Forms with real-time validation implemented",
           "Data tables with sorting and filtering",
           "Loading and error states properly displayed",
           "Modal and notification systems functional",
           "Accessibility audit passed with no critical issues"]),
    _task("Implement State Management and API Integration Layer", F, HIGH, 16,
          "Set up state management and connect the frontend to the backend API: client with "
          "error handling, caching, optimistic updates, retries, and real-time updates.",
          ["State management system properly configured",
           "All API endpoints integrated",
           "Loading states displayed during API calls",
           "Error messages shown appropriately",
           "Data caching working to reduce API calls",
           "Optimistic updates implemented where needed",
           "Shared helpers created for common operations",
           "Real-time updates working (if applicable)"]),
    _task("Implement Comprehensive Testing Suite", B, MEDIUM, 20,
          "Create automated tests: unit tests for business logic, integration tests for API "
          "endpoints, component and end-to-end tests, coverage reporting in CI.",
          ["Testing framework configured",
           "Unit tests covering core business logic",
           "Integration tests for all API endpoints",
           "Component tests for major UI components",
           "E2E tests for main user workflows",
           "Test coverage above 80%",
           "Tests running automatically in CI/CD",
           "Testing documentation completed"]),
    _task("Implement Security Measures and Performance Optimization", B, HIGH, 16,
          "Harden and speed up the application: input validation, rate limiting, CORS and "
          "security headers, injection prevention, query optimization, and caching.",
          ["All user inputs validated and sanitized",
           "Rate limiting implemented on all endpoints",
           "Security headers properly configured",
           "No SQL injection or XSS vulnerabilities",
           "Request/response logging working",
           "Slow queries identified and optimized",
           "Caching implemented for frequently accessed data",
           "Security audit completed with no critical issues"]),
    _task("Setup CI/CD Pipeline and Production Deployment", B, MEDIUM, 14,
          "Prepare production deployment with automated workflows: pipeline, quality checks, "
          "containers, environment configuration, backups, monitoring, and runbooks.",
          ["CI/CD pipeline running successfully",
           "Automated tests passing before deployment",
           "Docker images built and pushed to registry",
           "Production environment properly configured",
           "Database backups scheduled and tested",
           "Monitoring dashboards set up",
           "Auto-scaling configured and tested",
           "Deployment documentation completed"]),
]


class FallbackTaskDecomposer(TaskDecomposer):
    source = "fallback"

    def __init__(self, classifier: Optional[TextClassifier] = None):
        self.classifier = classifier or SubstringClassifier()

    def build_tasks(self, brief: ProjectBrief) -> List[TechnicalTask]:
        description = brief.description.lower()
        blueprints: List[Blueprint] = []
        for name, keywords, tasks in FAMILIES:
            if self.classifier.matches(description, keywords):
                logger.debug(f"Fallback family matched: {name}")
                blueprints.extend(tasks)

        if blueprints and not any(
            "api" in b["title"].lower() or "foundation" in b["title"].lower() for b in blueprints
        ):
            blueprints.append(API_INFRASTRUCTURE)

        if not blueprints:
            logger.warning("⚠️ No keywords matched, using baseline project tasks")
            blueprints = BASELINE

        return [
            TechnicalTask(id=f"fallback_{n:02d}_{slugify(b['title'])}", **b)
            for n, b in enumerate(blueprints, start=1)
        ]

    async def decompose(self, brief: ProjectBrief) -> List[TechnicalTask]:
        logger.info("--- FALLBACK AGENT: Rule-based decomposition ---")
        tasks = self.build_tasks(brief)
        logger.info(f"Fallback decomposer produced {len(tasks)} tasks")
        return tasks
