"""
tRPC router and OpenAPI generation.

Two emitters live here:

- TrpcRouterEmitter turns GraphQL root operation types into a tRPC
  ``appRouter``; every other type becomes a Zod schema defined above it.
- OpenApiEmitter turns the procedures of a tRPC router into an OpenAPI 3.1
  document, with the router's named Zod schemas under
  ``components.schemas``.
"""

import re
from typing import Any, Dict, List

from .base import BaseEmitter, MappedDeclaration
from .json_schema import dump
from .zod import ZodEmitter, inline_object


# GraphQL root operation type -> tRPC procedure kind
ROOT_OPERATIONS = {
    'Query': 'query',
    'Mutation': 'mutation',
    'Subscription': 'subscription',
}

OPENAPI_VERSION = '3.1.0'
COMPONENTS_PREFIX = '#/components/schemas/'
TAGS = (
    ('Queries', 'Read operations (HTTP GET)'),
    ('Mutations', 'Write operations (HTTP POST)'),
)


def format_procedure_name(name: str) -> str:
    """'getUserById' -> 'Get User By Id'"""
    words = re.sub(r'([A-Z])', r' \1', name).replace('_', ' ').split()
    return ' '.join(w[:1].upper() + w[1:] for w in words)


class TrpcRouterEmitter(ZodEmitter):
    """Emits Zod schemas for object types followed by the tRPC router."""

    IMPORT_LINE = "import { z } from 'zod';\nimport { router, publicProcedure } from './trpc';"

    def emit(self, declarations: List[MappedDeclaration]) -> str:
        lines = [self.IMPORT_LINE, '']
        routes = []
        for mapped in declarations:
            kind = ROOT_OPERATIONS.get(mapped.name)
            if kind is None:
                lines.extend(self.emit_declaration(mapped))
            else:
                routes.extend(self.emit_route(field, kind) for field in mapped.fields)

        lines.append('export const appRouter = router({')
        lines.append('\n\n'.join(routes))
        lines.append('});')
        lines.append('')
        lines.append('export type AppRouter = typeof appRouter;')
        return '\n'.join(lines) + '\n'

    def emit_route(self, mapped, kind: str) -> str:
        pad = self._ctx.indent()
        route = f'{pad}{mapped.key}: publicProcedure\n'
        if mapped.arguments:
            route += f'{pad * 2}.input({inline_object(mapped.arguments)})\n'
        return_type = str(mapped.field.raw_type).strip()
        route += (
            f'{pad * 2}.{kind}(async ({{ input }}) => {{\n'
            f'{pad * 3}// TODO: Return {return_type}\n'
            f'{pad * 3}return null as any;\n'
            f'{pad * 2}}}),'
        )
        return route


class OpenApiEmitter(BaseEmitter):
    """
    Emits an OpenAPI 3.1 document from tRPC procedures.

    Declarations with a ``procedure`` attribute become paths; queries map to
    GET with the input as a deepObject query parameter, mutations to POST
    with a JSON request body. All other declarations are component schemas.
    """

    PLACEHOLDER = '{}'

    def emit(self, declarations: List[MappedDeclaration]) -> str:
        paths: Dict[str, Any] = {}
        schemas: Dict[str, Any] = {}
        for mapped in declarations:
            procedure = mapped.declaration.attributes.get('procedure')
            if procedure is None:
                schemas[mapped.name] = mapped.expression
            else:
                method = 'post' if procedure == 'mutation' else 'get'
                paths[f'/trpc/{mapped.name}'] = {method: self.operation(mapped, procedure)}

        document: Dict[str, Any] = {
            'openapi': OPENAPI_VERSION,
            'info': {
                'title': 'tRPC Converted API',
                'version': '1.0.0',
                'description': 'Auto-generated from tRPC router definition.',
            },
            'servers': [{'url': 'http://localhost:3000', 'description': 'Local dev server'}],
            'tags': [{'name': name, 'description': text} for name, text in TAGS],
            'paths': paths,
        }
        if schemas:
            document['components'] = {'schemas': schemas}
        return dump(document)

    def operation(self, mapped: MappedDeclaration, procedure: str) -> Dict[str, Any]:
        operation: Dict[str, Any] = {
            'summary': format_procedure_name(mapped.name),
            'operationId': mapped.name,
            'tags': ['Mutations' if procedure == 'mutation' else 'Queries'],
        }
        if mapped.declaration.attributes.get('has_input'):
            schema = mapped.expression
            if procedure == 'mutation':
                operation['requestBody'] = {
                    'required': True,
                    'content': {'application/json': {'schema': schema}},
                }
            else:
                operation['parameters'] = [{
                    'name': 'input',
                    'in': 'query',
                    'required': True,
                    'schema': schema,
                    'style': 'deepObject',
                    'explode': True,
                }]
        operation['responses'] = {
            '200': {'description': 'Successful response'},
            '400': {'description': 'Invalid input'},
        }
        return operation
